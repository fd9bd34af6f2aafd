#main.py

"""
Rewatch - watch a directory tree and re-run a command on every change
"""
import sys
from pathlib import Path

# Add project directory to path
sys.path.insert(0, str(Path(__file__).parent))

from rewatch.cli import main

if __name__ == "__main__":
    sys.exit(main())
