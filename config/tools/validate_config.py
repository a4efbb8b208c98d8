# config/tools/validate_config.py

import sys           # for exit codes
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_config.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from runtime.config import check_environment, load_config  # import our loader


def main() -> None:
    """Load and print the resolved ksdump config, failing fast on problems."""
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        print("Config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        sys.exit(1)                          # non-zero exit: CI will mark as failed

    problems = check_environment(config)
    if problems:
        print("Config validation FAILED:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        sys.exit(1)

    print("Config validation OK.")
    print("\nResolved config:")
    pprint(vars(config))


if __name__ == "__main__":
    main()  # run main() only when script is executed directly
