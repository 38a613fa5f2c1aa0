"""Tests for package and file discovery."""

from repack.discovery import iter_package_files, list_packages


class TestListPackages:
    """Tests for package discovery."""
    
    def test_excludes_by_name(self, source_root):
        """Test that excluded package names and plain files are skipped."""
        for name in ("core", "deno", "plugin-x", "test-utils"):
            (source_root / name).mkdir()
        (source_root / "README.md").write_text("docs")
        
        packages = list_packages(source_root, {"deno", "test-utils"})
        
        assert [p.name for p in packages] == ["core", "plugin-x"]
    
    def test_output_paths(self, tmp_path, source_root):
        """Test that each package gets a mirrored output path."""
        (source_root / "core").mkdir()
        out = tmp_path / "out"
        
        packages = list_packages(source_root, set(), output_root=out)
        
        assert packages[0].source_path == (source_root / "core").resolve()
        assert packages[0].output_path == out / "core"


class TestIterPackageFiles:
    """Tests for recursive file enumeration."""
    
    def test_root_level_dir_exclusion(self, source_root, write_files):
        """Test that artifact directories are skipped only at the package root."""
        write_files(source_root, {
            "core/src/index.ts": "",
            "core/src/lib/helper.ts": "",
            "core/lib/index.js": "",
            "core/esm/index.js": "",
            "core/tests/index.test.ts": "",
            "core/node_modules/x/index.js": "",
        })
        package = source_root / "core"
        
        files = list(iter_package_files(package, {"esm", "lib", "tests", "node_modules"}, set()))
        relative = sorted(f.relative_to(package).as_posix() for f in files)
        
        assert relative == ["src/index.ts", "src/lib/helper.ts"]
    
    def test_file_exclusion_every_depth(self, source_root, write_files):
        """Test that excluded filenames are skipped at any depth."""
        write_files(source_root, {
            "core/package.json": "{}",
            "core/CHANGELOG.md": "",
            "core/README.md": "",
            "core/src/index.ts": "",
            "core/src/nested/package.json": "{}",
            "core/src/nested/tsconfig.json": "{}",
            "core/src/nested/schema.graphql": "",
        })
        package = source_root / "core"
        excluded = {"package.json", "tsconfig.json", "CHANGELOG.md"}
        
        files = list(iter_package_files(package, set(), excluded))
        relative = sorted(f.relative_to(package).as_posix() for f in files)
        
        assert relative == ["README.md", "src/index.ts", "src/nested/schema.graphql"]
    
    def test_empty_package(self, source_root):
        """Test that an empty package yields nothing."""
        (source_root / "empty").mkdir()
        
        assert list(iter_package_files(source_root / "empty", set(), set())) == []
    
    def test_symlinked_package_stays_under_root(self, tmp_path, source_root, write_files):
        """Test that files of a symlinked package keep the source root prefix."""
        write_files(tmp_path / "elsewhere", {"linked/src/index.ts": ""})
        (source_root / "linked").symlink_to(tmp_path / "elsewhere" / "linked", target_is_directory=True)
        package = source_root / "linked"
        
        files = list(iter_package_files(package, set(), set()))
        
        assert files == [package / "src" / "index.ts"]
