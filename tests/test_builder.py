"""End-to-end tests for the build orchestrator."""

import pytest

from repack.builder import build, check_roots
from repack.config import BuildConfig
from repack.errors import ConfigError, RepackError, ResolutionError


def read_tree(root):
    """Map of relative POSIX path -> bytes for every file under root."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def sample_tree(source_root, write_files):
    write_files(source_root, {
        "core/package.json": "{}",
        "core/src/index.ts": "export * from './util';\nexport { default } from './builder';\n",
        "core/src/util.ts": "import { GraphQLSchema } from 'graphql';\nexport type S = GraphQLSchema;\n",
        "core/src/builder.ts": "export default class SchemaBuilder {}\n",
        "core/lib/index.js": "compiled",
        "plugin-x/src/index.ts": "import './a';\nexport * from './helpers';\n",
        "plugin-x/src/a.ts": "import { h } from './helpers';\nimport SchemaBuilder from '@pothos/core';\n",
        "plugin-x/src/helpers/index.ts": "export const h = 1;\n",
        "plugin-x/src/schema.graphql": "type Query { a: String }\n",
        "plugin-x/README.md": "# plugin-x\n",
        "deno/scripts/build.ts": "import 'left-pad';\n",
    })
    return source_root


class TestBuild:
    """Tests for the full pipeline."""
    
    def test_end_to_end(self, make_config, sample_tree):
        """Test the mirrored output tree and rewritten specifiers."""
        config = make_config()
        
        result = build(config)
        output = read_tree(config.output_root)
        
        assert result.written
        assert [p.name for p in result.packages] == ["core", "plugin-x"]
        assert sorted(output) == [
            "core/builder.ts",
            "core/index.ts",
            "core/mod.ts",
            "core/util.ts",
            "plugin-x/README.md",
            "plugin-x/a.ts",
            "plugin-x/helpers/index.ts",
            "plugin-x/index.ts",
            "plugin-x/mod.ts",
            "plugin-x/schema.graphql",
        ]
        assert output["core/index.ts"] == (
            b"// @ts-nocheck\nexport * from './util.ts';\nexport { default } from './builder.ts';\n"
        )
        assert output["core/util.ts"].startswith(
            b"// @ts-nocheck\nimport { GraphQLSchema } from 'https://cdn.skypack.dev/graphql?dts';"
        )
        assert output["plugin-x/a.ts"] == (
            b"// @ts-nocheck\nimport { h } from './helpers/index.ts';\n"
            b"import SchemaBuilder from '../core/index.ts';\n"
        )
        assert output["plugin-x/schema.graphql"] == b"type Query { a: String }\n"
    
    def test_companion_modules(self, make_config, sample_tree):
        """Test that every package gets exactly one companion module."""
        config = make_config()
        
        result = build(config)
        
        assert [c.package for c in result.companions] == ["core", "plugin-x"]
        for name in ("core", "plugin-x"):
            content = (config.output_root / name / "mod.ts").read_text()
            assert content == (
                "import Default from './index.ts';\n"
                "export * from './index.ts';\n"
                "export default Default;\n"
            )
    
    def test_output_root_is_recreated(self, make_config, sample_tree):
        """Test that stale output is removed before writing."""
        config = make_config()
        stale = config.output_root / "old" / "stale.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")
        
        build(config)
        
        assert not stale.exists()
        assert (config.output_root / "core" / "index.ts").exists()
    
    def test_idempotent(self, make_config, sample_tree):
        """Test that two runs produce byte-identical trees."""
        config = make_config()
        
        build(config)
        first = read_tree(config.output_root)
        build(config)
        second = read_tree(config.output_root)
        
        assert first == second
    
    def test_unknown_module_fails_without_writing(self, make_config, sample_tree, write_files):
        """Test that an unmapped bare specifier fails the run before any write."""
        write_files(sample_tree, {"core/src/pad.ts": "import pad from 'left-pad';\n"})
        config = make_config()
        
        with pytest.raises(ResolutionError) as excinfo:
            build(config)
        
        assert excinfo.value.specifier == "left-pad"
        assert excinfo.value.source_file == config.source_root / "core" / "src" / "pad.ts"
        assert not (config.output_root / "core" / "pad.ts").exists()
        assert not config.output_root.exists()
    
    def test_missing_relative_target_fails(self, make_config, sample_tree, write_files):
        """Test that an unresolvable relative import fails the run."""
        write_files(sample_tree, {"plugin-x/src/broken.ts": "export * from './gone';\n"})
        config = make_config()
        
        with pytest.raises(ResolutionError):
            build(config)
        
        assert not (config.output_root / "plugin-x" / "broken.ts").exists()
    
    def test_dry_run_writes_nothing(self, make_config, sample_tree):
        """Test that a dry run transforms but leaves the output root alone."""
        config = make_config()
        config.output_root.mkdir()
        (config.output_root / "keep.txt").write_text("keep")
        
        result = build(config, dry_run=True)
        
        assert not result.written
        assert result.rewrite_count == 7
        assert read_tree(config.output_root) == {"keep.txt": b"keep"}
    
    def test_source_companion_is_replaced(self, make_config, source_root, write_files):
        """Test that a source file colliding with the companion is not emitted twice."""
        write_files(source_root, {
            "core/src/index.ts": "",
            "core/src/mod.ts": "export const legacy = true;\n",
        })
        config = make_config()
        
        result = build(config)
        
        assert [f.path.name for f in result.files] == ["index.ts"]
        assert (config.output_root / "core" / "mod.ts").read_text().startswith("import Default")
    
    def test_symlinked_package(self, make_config, tmp_path, source_root, write_files):
        """Test that a symlinked package is emitted under its link name."""
        write_files(tmp_path / "elsewhere", {"linked/src/index.ts": "export * from './util';\n", "linked/src/util.ts": ""})
        (source_root / "linked").symlink_to(tmp_path / "elsewhere" / "linked", target_is_directory=True)
        config = make_config()
        
        build(config)
        
        assert (config.output_root / "linked" / "index.ts").read_text() == (
            "// @ts-nocheck\nexport * from './util.ts';\n"
        )
    
    def test_colliding_output_paths(self, make_config, source_root, write_files):
        """Test that two sources mapping to one output path fail the run."""
        write_files(source_root, {"core/index.ts": "", "core/src/index.ts": ""})
        config = make_config()
        
        with pytest.raises(RepackError) as excinfo:
            build(config)
        
        message = str(excinfo.value)
        assert str(config.source_root / "core" / "index.ts") in message
        assert str(config.source_root / "core" / "src" / "index.ts") in message
        assert not config.output_root.exists()
    
    def test_unmapped_async_package(self, make_config, source_root, write_files):
        """Test that a binding named like a keyword still gets resolved."""
        write_files(source_root, {"core/src/index.ts": "import async from 'async';\n"})
        config = make_config()
        
        with pytest.raises(ResolutionError) as excinfo:
            build(config)
        
        assert excinfo.value.specifier == "async"


class TestCheckRoots:
    """Tests for output root safety checks."""
    
    def test_output_equal_to_source(self, source_root):
        config = BuildConfig(source_root=source_root, output_root=source_root)
        
        with pytest.raises(ConfigError):
            check_roots(config)
    
    def test_output_containing_source(self, tmp_path, source_root):
        config = BuildConfig(source_root=source_root, output_root=tmp_path)
        
        with pytest.raises(ConfigError):
            check_roots(config)
    
    def test_output_inside_source(self, source_root):
        config = BuildConfig(source_root=source_root, output_root=source_root / "deno" / "packages")
        
        check_roots(config)
