"""Tests for chunk key derivation."""

import hashlib
import itertools

from obfucache.core.caching import (
    ChunkDescriptor,
    ChunkKeyDeriver,
    SourceHasher,
    compose_key,
    derive_key,
    hash_content,
)


def _chunk(*ids: str) -> ChunkDescriptor:
    return ChunkDescriptor(name="c", file_name="static/js/c.abc.js", module_ids=ids)


def _hasher(sources: dict[str, str]) -> SourceHasher:
    hasher = SourceHasher()
    for module_id, source in sources.items():
        hasher.track(module_id, source)
    return hasher


class TestHashContent:
    """Tests for the shared digest helper."""

    def test_text_is_utf8_encoded(self):
        assert hash_content("h\u00e9") == hashlib.sha256("h\u00e9".encode()).hexdigest()

    def test_lone_surrogate_passed_through(self):
        """Test a lone surrogate hashes as its raw UTF-8 code unit bytes."""
        assert hash_content("\ud800") == hashlib.sha256(b"\xed\xa0\x80").hexdigest()


class TestComposeKey:
    """Tests for the raw key composition."""

    def test_key_is_sha256_of_sorted_pairs(self):
        """Test exact composition: sorted 'id:hash' pairs joined by '|'."""
        key = compose_key(["b", "a"], {"a": "11", "b": "22"})

        assert key == hashlib.sha256(b"a:11|b:22").hexdigest()
        assert len(key) == 64

    def test_missing_fingerprint_uses_unknown_sentinel(self):
        """Test untracked members contribute 'unknown'."""
        key = compose_key(["a", "b"], {"a": "11"})

        assert key == hashlib.sha256(b"a:11|b:unknown").hexdigest()

    def test_empty_chunk_has_stable_key(self):
        """Test a chunk without modules still gets a key."""
        assert compose_key([], {}) == hashlib.sha256(b"").hexdigest()


class TestDeriveKey:
    """Tests for keys derived from the build's fingerprints."""

    def test_order_independent(self):
        """Test every permutation of module ids yields the same key."""
        hasher = _hasher({"a.ts": "A", "b.ts": "B", "c.ts": "C"})
        keys = {
            derive_key(_chunk(*perm), hasher)
            for perm in itertools.permutations(["a.ts", "b.ts", "c.ts"])
        }

        assert len(keys) == 1

    def test_deterministic_across_builds(self):
        """Test identical sources in two builds give the same key."""
        sources = {"a.ts": "A", "b.ts": "B"}

        assert derive_key(_chunk("a.ts", "b.ts"), _hasher(sources)) == derive_key(
            _chunk("b.ts", "a.ts"), _hasher(sources)
        )

    def test_content_change_changes_key(self):
        """Test editing one member changes the chunk key."""
        before = derive_key(_chunk("a.ts", "b.ts"), _hasher({"a.ts": "A", "b.ts": "B"}))
        after = derive_key(_chunk("a.ts", "b.ts"), _hasher({"a.ts": "A", "b.ts": "B2"}))

        assert before != after

    def test_isolation_between_chunks(self):
        """Test editing a module leaves keys of chunks without it untouched."""
        before = _hasher({"a.ts": "A", "b.ts": "B", "x.ts": "X"})
        after = _hasher({"a.ts": "A", "b.ts": "B-edited", "x.ts": "X"})

        assert derive_key(_chunk("x.ts"), before) == derive_key(_chunk("x.ts"), after)
        assert derive_key(_chunk("a.ts", "b.ts"), before) != derive_key(
            _chunk("a.ts", "b.ts"), after
        )

    def test_untracked_member_is_not_collapsed(self):
        """Test a chunk with an untracked member differs from one where it's tracked."""
        tracked = _hasher({"a.ts": "A", "b.ts": "B"})
        partial = _hasher({"a.ts": "A"})

        assert derive_key(_chunk("a.ts", "b.ts"), tracked) != derive_key(
            _chunk("a.ts", "b.ts"), partial
        )

    def test_key_ignores_filenames(self):
        """Test provisional filename and chunk name don't affect the key."""
        hasher = _hasher({"a.ts": "A"})
        one = ChunkDescriptor(name="x", file_name="static/js/x.111.js", module_ids=("a.ts",))
        two = ChunkDescriptor(name="y", file_name="static/js/y.222.js", module_ids=("a.ts",))

        assert derive_key(one, hasher) == derive_key(two, hasher)

    def test_deriver_class_matches_function(self):
        """Test ChunkKeyDeriver is a bound form of derive_key."""
        hasher = _hasher({"a.ts": "A"})

        assert ChunkKeyDeriver(hasher).derive(_chunk("a.ts")) == derive_key(_chunk("a.ts"), hasher)
