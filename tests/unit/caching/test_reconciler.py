"""Tests for RenameReconciler: stable output filenames across builds."""

import logging

import pytest

from obfucache.core.caching import (
    ArtifactCache,
    ChunkDescriptor,
    EmittedFile,
    NullCacheStore,
    RenameConflictError,
    RenamePlan,
    RenameReconciler,
)

MAIN = "/app/src/main.ts"
ABOUT = "/app/src/about.ts"
VENDOR = "/app/src/vendor-shim.ts"


def _chunk(file_name: str, *module_ids: str, name: str = "", **kwargs) -> EmittedFile:
    return EmittedFile(file_name=file_name, name=name, module_ids=module_ids, **kwargs)


def _bundle(*files: EmittedFile) -> dict[str, EmittedFile]:
    return {f.file_name: f for f in files}


@pytest.fixture
async def cache() -> ArtifactCache:
    cache = ArtifactCache(NullCacheStore())
    await cache.open()
    for module_id in (MAIN, ABOUT, VENDOR):
        cache.track(module_id, f"source of {module_id}")
    return cache


def _remember(cache: ArtifactCache, output_hash: str | None, *module_ids: str) -> None:
    chunk = ChunkDescriptor(file_name="static/js/old.js", module_ids=module_ids)
    cache.record(chunk, "obf")
    if output_hash is not None:
        cache.finalize_output_name(chunk, output_hash)


class TestHashPattern:
    """Tests for locating the hash segment of a filename."""

    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [
            ("static/js/main.AAAA1111.js", "AAAA1111"),
            ("static/js/Bq3xY_9a.js", "Bq3xY_9a"),
            ("assets/index-legacy.k2-LmN0p.js", "k2-LmN0p"),
            ("static/css/main.AAAA1111.css", None),
        ],
    )
    async def test_extract_hash(self, cache: ArtifactCache, file_name: str, expected: str | None):
        assert RenameReconciler(cache).extract_hash(file_name) == expected

    async def test_with_hash_replaces_only_hash_segment(self, cache: ArtifactCache):
        reconciler = RenameReconciler(cache)

        assert reconciler.with_hash("static/js/main.AAAA.js", "BBBB") == "static/js/main.BBBB.js"
        assert reconciler.with_hash("static/js/AAAA.js", "BBBB") == "static/js/BBBB.js"

    async def test_pattern_without_hash_group_rejected(self, cache: ArtifactCache):
        with pytest.raises(ValueError, match="named group 'hash'"):
            RenameReconciler(cache, r"\.([a-z]+)\.js$")


class TestReconcile:
    """Tests for planning and applying renames."""

    async def test_restores_recorded_hash(self, cache: ArtifactCache):
        """Test a cached chunk gets its stable name back."""
        _remember(cache, "STABLE01", MAIN)
        bundle = _bundle(_chunk("static/js/main.NEWHASH1.js", MAIN, name="main"))

        result = RenameReconciler(cache).reconcile(bundle)

        assert list(result.files) == ["static/js/main.STABLE01.js"]
        assert result.files["static/js/main.STABLE01.js"].file_name == "static/js/main.STABLE01.js"
        assert result.renamed == [
            RenamePlan(
                old_name="static/js/main.NEWHASH1.js",
                new_name="static/js/main.STABLE01.js",
                key=result.renamed[0].key,
            )
        ]
        assert not result.conflicts

    async def test_matching_hash_is_left_alone(self, cache: ArtifactCache):
        _remember(cache, "STABLE01", MAIN)
        bundle = _bundle(_chunk("static/js/main.STABLE01.js", MAIN))

        result = RenameReconciler(cache).reconcile(bundle)

        assert list(result.files) == ["static/js/main.STABLE01.js"]
        assert not result.renamed

    async def test_new_entry_seeds_output_hash(self, cache: ArtifactCache):
        """Test the first build's name becomes the stable one."""
        _remember(cache, None, MAIN)
        bundle = _bundle(_chunk("static/js/main.FIRST001.js", MAIN))

        result = RenameReconciler(cache).reconcile(bundle)

        entry = cache.peek(ChunkDescriptor(file_name="x", module_ids=(MAIN,)))
        assert result.seeded == ["static/js/main.FIRST001.js"]
        assert entry.output_hash == "FIRST001"
        assert entry.file_name == "static/js/main.FIRST001.js"
        assert not result.renamed

    async def test_uncached_chunk_untouched(self, cache: ArtifactCache):
        bundle = _bundle(_chunk("static/js/main.FIRST001.js", MAIN))

        result = RenameReconciler(cache).reconcile(bundle)

        assert list(result.files) == ["static/js/main.FIRST001.js"]
        assert not result.seeded

    async def test_assets_are_skipped(self, cache: ArtifactCache):
        _remember(cache, "STABLE01", MAIN)
        bundle = _bundle(_chunk("static/js/main.NEWHASH1.js", MAIN, kind="asset"))

        result = RenameReconciler(cache).reconcile(bundle)

        assert list(result.files) == ["static/js/main.NEWHASH1.js"]

    async def test_references_are_rewritten(self, cache: ArtifactCache):
        """Test importers see the restored name in imports and code."""
        _remember(cache, "STABLE01", MAIN)
        bundle = _bundle(
            _chunk("static/js/main.NEWHASH1.js", MAIN, code="export const a=1;"),
            _chunk(
                "static/js/about.ABCD1234.js",
                ABOUT,
                code='import{a}from"./main.NEWHASH1.js";import("./main.NEWHASH1.js");',
                imports=("static/js/main.NEWHASH1.js",),
                dynamic_imports=("static/js/main.NEWHASH1.js",),
            ),
            _chunk(
                "src/pages/index/index.html",
                kind="asset",
                code='<script src="/static/js/main.NEWHASH1.js"></script>',
            ),
        )

        result = RenameReconciler(cache).reconcile(bundle)

        about = result.files["static/js/about.ABCD1234.js"]
        assert about.imports == ("static/js/main.STABLE01.js",)
        assert about.dynamic_imports == ("static/js/main.STABLE01.js",)
        assert about.code == 'import{a}from"./main.STABLE01.js";import("./main.STABLE01.js");'
        assert "main.STABLE01.js" in result.files["src/pages/index/index.html"].code

    async def test_input_map_not_mutated(self, cache: ArtifactCache):
        _remember(cache, "STABLE01", MAIN)
        original = _chunk("static/js/main.NEWHASH1.js", MAIN)
        bundle = _bundle(original)

        RenameReconciler(cache).reconcile(bundle)

        assert list(bundle) == ["static/js/main.NEWHASH1.js"]
        assert bundle["static/js/main.NEWHASH1.js"] is original
        assert original.file_name == "static/js/main.NEWHASH1.js"


class TestConflicts:
    """Tests for renames that would collide."""

    async def test_duplicate_targets_are_all_dropped(
        self, cache: ArtifactCache, caplog: pytest.LogCaptureFixture
    ):
        """Test two chunks restoring the same name both keep provisional names."""
        _remember(cache, "SAME0001", MAIN)
        _remember(cache, "SAME0001", ABOUT)
        bundle = _bundle(
            _chunk("static/js/AAAA0001.js", MAIN),
            _chunk("static/js/BBBB0002.js", ABOUT),
        )

        with caplog.at_level(logging.ERROR):
            result = RenameReconciler(cache).reconcile(bundle)

        assert set(result.files) == {"static/js/AAAA0001.js", "static/js/BBBB0002.js"}
        assert not result.renamed
        assert {p.old_name for p in result.conflicts} == set(bundle)
        assert "static/js/SAME0001.js" in caplog.text

    async def test_target_held_by_other_file(self, cache: ArtifactCache):
        """Test a rename onto a name that stays occupied is refused."""
        _remember(cache, "TAKEN001", MAIN)
        bundle = _bundle(
            _chunk("static/js/AAAA0001.js", MAIN),
            _chunk("static/js/TAKEN001.js", VENDOR),
        )

        result = RenameReconciler(cache).reconcile(bundle)

        assert set(result.files) == set(bundle)
        assert [p.old_name for p in result.conflicts] == ["static/js/AAAA0001.js"]

    async def test_swap_is_allowed(self, cache: ArtifactCache):
        """Test two chunks may exchange names since both are vacated."""
        _remember(cache, "BBBB0002", MAIN)
        _remember(cache, "AAAA0001", ABOUT)
        bundle = _bundle(
            _chunk("static/js/AAAA0001.js", MAIN, code="main"),
            _chunk("static/js/BBBB0002.js", ABOUT, code="about"),
        )

        result = RenameReconciler(cache).reconcile(bundle)

        assert not result.conflicts
        assert result.files["static/js/BBBB0002.js"].module_ids == (MAIN,)
        assert result.files["static/js/AAAA0001.js"].module_ids == (ABOUT,)

    async def test_dropped_rename_exposes_chained_conflict(self, cache: ArtifactCache):
        """Test a rename blocked by a dropped rename is dropped too."""
        # MAIN and ABOUT both want SAME; VENDOR wants MAIN's old name
        _remember(cache, "SAME0001", MAIN)
        _remember(cache, "SAME0001", ABOUT)
        _remember(cache, "AAAA0001", VENDOR)
        bundle = _bundle(
            _chunk("static/js/AAAA0001.js", MAIN),
            _chunk("static/js/BBBB0002.js", ABOUT),
            _chunk("static/js/CCCC0003.js", VENDOR),
        )

        result = RenameReconciler(cache).reconcile(bundle)

        assert set(result.files) == set(bundle)
        assert len(result.conflicts) == 3
        assert result.files["static/js/CCCC0003.js"].module_ids == (VENDOR,)

    async def test_check_conflicts_raises(self, cache: ArtifactCache):
        plans = [
            RenamePlan(old_name="a.1.js", new_name="a.2.js", key="k1"),
            RenamePlan(old_name="b.1.js", new_name="a.2.js", key="k2"),
        ]
        bundle = _bundle(_chunk("a.1.js"), _chunk("b.1.js"))

        with pytest.raises(RenameConflictError) as exc_info:
            RenameReconciler(cache).check_conflicts(plans, bundle)

        assert exc_info.value.plans == plans
