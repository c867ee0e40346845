# config/tools/validate_env.py

import sys           # for exit codes
from dataclasses import asdict
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_env.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from env.loader import load_walker_profile  # import our loader


def main() -> None:
    """Load and print the resolved walker profile, failing fast on errors."""
    profile_name = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        profile = load_walker_profile(profile_name)
    except (FileNotFoundError, KeyError, ValueError, TypeError) as e:
        print("Walker config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        sys.exit(1)                          # non-zero exit: CI will mark as failed

    print("Walker config validation OK.")
    print("\nActive profile:", profile.name)
    print("\nPathfinding:")
    pprint(asdict(profile.pathfinding))
    print("\nMovement:")
    pprint(asdict(profile.movement))
    print("\nLogging:")
    pprint(asdict(profile.logging))


if __name__ == "__main__":
    main()  # run main() only when script is executed directly
