"""
Entry point for running musika_sim as a module.

Usage:
    python -m musika_sim cli single --steps 720 --plots
"""

import sys
from .cli import main

if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "cli":
        # Remove "cli" from args and run CLI
        sys.argv.pop(1)
        main()
    else:
        print("Musika Marketplace Simulation Package")
        print("Usage:")
        print("  python -m musika_sim.cli --help")
        print("  python -m musika_sim.cli single --scenario touring_season --steps 720")
        print("  python -m musika_sim.cli project 1 500")
