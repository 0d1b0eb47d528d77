#!/usr/bin/env python3
"""
Build the tree-sitter SourcePawn grammar.
This script downloads the grammar sources and compiles them into a shared library.
"""

import os
import sys
import subprocess
from pathlib import Path

import yaml

GRAMMAR_CONFIG = Path(__file__).parent / "grammars" / "sourcepawn" / "config.yaml"


def clone_grammar(language: str, repo_url: str, build_dir: Path) -> Path:
    """Clone a tree-sitter grammar repository if it doesn't exist."""
    repo_dir = build_dir / f"tree-sitter-{language}"

    if repo_dir.exists():
        print(f"Grammar repository for {language} already exists at {repo_dir}")
        return repo_dir

    print(f"Cloning {language} grammar from {repo_url}...")
    try:
        subprocess.run(
            ["git", "clone", "--depth", "1", repo_url, str(repo_dir)],
            check=True,
            capture_output=True,
            text=True
        )
        print(f"Successfully cloned {language} grammar")
    except subprocess.CalledProcessError as e:
        print(f"Error cloning {language} grammar: {e.stderr}")
        raise

    return repo_dir


def build_library(repo_dir: Path, output_path: Path):
    """Compile the generated parser sources into a shared library."""
    print(f"\nBuilding shared library at {output_path}...")

    src_dir = repo_dir / "src"
    sources = [src_dir / "parser.c"]
    scanner = src_dir / "scanner.c"
    if scanner.exists():
        sources.append(scanner)

    for source in sources:
        if not source.exists():
            raise FileNotFoundError(f"Grammar source not found: {source}")
        print(f"  - Including {source}")

    compiler = os.environ.get("CC", "cc")
    command = [compiler, "-shared", "-fPIC", "-O2", "-I", str(src_dir)]
    command += [str(source) for source in sources]
    command += ["-o", str(output_path)]

    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        print(f"Error building shared library: {e.stderr}")
        raise

    if not output_path.exists():
        raise FileNotFoundError(f"Library file was not created: {output_path}")

    size_kb = output_path.stat().st_size / 1024
    print(f"\nSuccessfully built shared library: {output_path}")
    print(f"Library size: {size_kb:.2f} KB")


def main():
    """Clone the SourcePawn grammar and compile it into a shared library."""
    print("=" * 60)
    print("Tree-sitter Grammar Builder")
    print("=" * 60)

    with open(GRAMMAR_CONFIG, 'r', encoding="utf-8") as f:
        config = yaml.safe_load(f)

    language = config["name"]
    grammar = config["grammar"]

    build_dir = Path("build")
    build_dir.mkdir(exist_ok=True)
    print(f"\nUsing build directory: {build_dir.absolute()}")

    print("\n" + "-" * 60)
    print("Step 1: Cloning grammar repository")
    print("-" * 60)

    try:
        repo_dir = clone_grammar(language, grammar["repository"], build_dir)
    except Exception as e:
        print(f"Failed to clone {language} grammar: {e}")
        sys.exit(1)

    print("\n" + "-" * 60)
    print("Step 2: Building shared library")
    print("-" * 60)

    if sys.platform == "darwin":
        lib_extension = "dylib"
    elif sys.platform == "win32":
        lib_extension = "dll"
    else:
        lib_extension = "so"

    output_path = build_dir / f"{grammar['library_name']}.{lib_extension}"

    try:
        build_library(repo_dir, output_path)
    except Exception as e:
        print(f"Failed to build shared library: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("Build completed successfully!")
    print("=" * 60)
    print(f"\nShared library location: {output_path.absolute()}")
    print(f"Exported symbol: {grammar['symbol']}")
    print("\nPoint SPFORMAT_GRAMMAR_LIBRARY at the library to use it from another directory.")
    print()


if __name__ == "__main__":
    main()
