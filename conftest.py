"""Pytest configuration for hybrid_dynamics package.

This file ensures the package can be imported without installation.
"""

import sys
from pathlib import Path
import importlib.util

package_root = Path(__file__).parent
src_dir = package_root / "src"

# Always reload to pick up changes
if "hybrid_dynamics" in sys.modules:
    del sys.modules["hybrid_dynamics"]
    to_remove = [k for k in sys.modules.keys() if k.startswith("hybrid_dynamics.")]
    for k in to_remove:
        del sys.modules[k]

# Make 'src' importable as 'hybrid_dynamics'
spec = importlib.util.spec_from_file_location("hybrid_dynamics", src_dir / "__init__.py",
                                              submodule_search_locations=[str(src_dir)])
hybrid_dynamics = importlib.util.module_from_spec(spec)
sys.modules["hybrid_dynamics"] = hybrid_dynamics
hybrid_dynamics.__path__ = [str(src_dir)]
spec.loader.exec_module(hybrid_dynamics)
