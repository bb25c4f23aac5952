"""
Build script for sgmlish with optional mypyc compilation.

Usage:
    # Pure Python build (default)
    python -m build

    # Compiled with mypyc
    SGMLISH_USE_MYPYC=1 pip install .
"""

import os
import sys
from pathlib import Path

from setuptools import find_packages, setup

# Determine if we should use mypyc
USE_MYPYC = os.environ.get("SGMLISH_USE_MYPYC", "0") == "1"

# Modules on the hot path of every parse.
# Note: events.py, config.py and binding.py are excluded; slotted frozen
# dataclasses and runtime type inspection don't compile cleanly.
MYPYC_MODULES = [
    "src/sgmlish/tokenizer.py",
    "src/sgmlish/serialize.py",
]


def build_with_mypyc() -> list:
    """Build extension modules using mypyc."""
    try:
        from mypyc.build import mypycify
    except ImportError:
        print(
            "ERROR: mypyc is not installed. Install with: pip install mypy",
            file=sys.stderr,
        )
        print("Or install with mypyc support: pip install sgmlish[mypyc]", file=sys.stderr)
        sys.exit(1)

    # Verify all modules exist
    for module_path in MYPYC_MODULES:
        if not Path(module_path).exists():
            print(f"ERROR: Module not found: {module_path}", file=sys.stderr)
            sys.exit(1)

    print("=" * 70)
    print("Building sgmlish with mypyc compilation")
    print("=" * 70)
    print(f"Compiling {len(MYPYC_MODULES)} modules:")
    for module in MYPYC_MODULES:
        print(f"  - {module}")
    print("=" * 70)

    opt_level = os.environ.get("MYPYC_OPT_LEVEL", "3")
    debug_level = os.environ.get("MYPYC_DEBUG_LEVEL", "0")

    mypyc_options = {
        "opt_level": opt_level,
        "debug_level": debug_level,
        "verbose": True,
        "separate": False,
        "multi_file": False,
    }

    return mypycify(MYPYC_MODULES, **mypyc_options)


if __name__ == "__main__":
    ext_modules = []

    if USE_MYPYC:
        ext_modules = build_with_mypyc()
    else:
        print("Building sgmlish in pure Python mode (no mypyc compilation)")
        print("To enable mypyc: SGMLISH_USE_MYPYC=1 pip install .")

    setup(
        name="sgmlish",
        version="0.2.0",
        description="Parse SGML-ish markup such as OFX 1.x into normalized events and dataclasses",
        long_description="Tokenizer, event builder, normalization transforms and validator for DTD-less SGML.",
        license="MIT",
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages("src"),
        extras_require={
            "test": ["pytest"],
            "mypyc": ["mypy"],
        },
        entry_points={
            "console_scripts": ["sgmlish=sgmlish.__main__:main"],
        },
        ext_modules=ext_modules,
    )
