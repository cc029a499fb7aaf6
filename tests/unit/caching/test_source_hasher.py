"""Tests for SourceHasher."""

from concurrent.futures import ThreadPoolExecutor
import hashlib

from obfucache.core.caching import SourceHasher, ThirdPartyPatternPolicy, TrackEverythingPolicy


class TestTrack:
    """Tests for fingerprinting modules."""

    def test_track_stores_sha256_of_content(self):
        """Test fingerprint is the SHA256 hex digest of the UTF-8 source."""
        hasher = SourceHasher()
        hasher.track("/app/src/main.ts", "export const x = 1;")

        expected = hashlib.sha256(b"export const x = 1;").hexdigest()
        assert hasher.get("/app/src/main.ts") == expected

    def test_same_content_twice_gives_same_fingerprint(self):
        """Test hashing is deterministic across separate hashers (builds)."""
        first, second = SourceHasher(), SourceHasher()
        first.track("a.ts", "const a = 'ü';")
        second.track("a.ts", "const a = 'ü';")

        assert first.get("a.ts") == second.get("a.ts")

    def test_retrack_overwrites_within_build(self):
        """Test tracking the same id again replaces its fingerprint."""
        hasher = SourceHasher()
        hasher.track("a.ts", "v1")
        hasher.track("a.ts", "v2")

        assert hasher.get("a.ts") == hashlib.sha256(b"v2").hexdigest()
        assert len(hasher) == 1

    def test_malformed_content_still_hashes(self):
        """Test lone surrogates and bytes don't raise."""
        hasher = SourceHasher()
        hasher.track("weird.ts", "bad \ud800 surrogate")
        hasher.track("raw.bin", b"\xff\xfe\x00")

        assert "weird.ts" in hasher
        assert hasher.get("raw.bin") == hashlib.sha256(b"\xff\xfe\x00").hexdigest()

    def test_fingerprint_returns_model(self):
        """Test fingerprint() wraps the digest in a ModuleFingerprint."""
        hasher = SourceHasher()
        hasher.track("a.ts", "x")

        fingerprint = hasher.fingerprint("a.ts")
        assert fingerprint is not None
        assert fingerprint.module_id == "a.ts"
        assert fingerprint.content_hash == hasher.get("a.ts")
        assert hasher.fingerprint("missing.ts") is None


class TestPolicy:
    """Tests for inclusion policy integration."""

    def test_third_party_skipped_by_default(self):
        """Test vendored modules are not fingerprinted without an include pattern."""
        hasher = SourceHasher()
        hasher.track("/app/node_modules/lodash/lodash.js", "module.exports = {}")

        assert len(hasher) == 0

    def test_included_third_party_tracked(self):
        """Test an explicitly included package is fingerprinted."""
        hasher = SourceHasher(ThirdPartyPatternPolicy(include_patterns=["react"]))
        hasher.track("/app/node_modules/react/index.js", "module.exports = React")

        assert "/app/node_modules/react/index.js" in hasher

    def test_track_everything_policy(self):
        """Test the permissive policy fingerprints vendored code too."""
        hasher = SourceHasher(TrackEverythingPolicy())
        hasher.track("/app/node_modules/lodash/lodash.js", "x")

        assert len(hasher) == 1


class TestSnapshot:
    """Tests for snapshots and lifecycle."""

    def test_snapshot_omits_untracked_ids(self):
        """Test snapshot only contains ids that have a fingerprint."""
        hasher = SourceHasher()
        hasher.track("a.ts", "a")

        assert hasher.snapshot(["a.ts", "b.ts"]) == {"a.ts": hasher.get("a.ts")}

    def test_clear_discards_fingerprints(self):
        """Test clear() empties the per-build map."""
        hasher = SourceHasher()
        hasher.track("a.ts", "a")
        hasher.clear()

        assert len(hasher) == 0
        assert hasher.get("a.ts") is None

    def test_concurrent_tracking(self):
        """Test parallel track() calls on distinct ids all land."""
        hasher = SourceHasher()
        ids = [f"/app/src/m{i}.ts" for i in range(200)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda mid: hasher.track(mid, f"source of {mid}"), ids))

        assert len(hasher) == 200
        assert hasher.get(ids[17]) == hashlib.sha256(f"source of {ids[17]}".encode()).hexdigest()
