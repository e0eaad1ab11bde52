"""Entry point: search | stats | probe."""

import sys

MODES = ("search", "stats", "probe")


def main():
    argv = sys.argv[1:]
    # --config PATH may come before the mode
    mode = ""
    args = iter(argv)
    for arg in args:
        if arg == "--config":
            next(args, None)
        elif not arg.startswith("-"):
            mode = arg.lower()
            break

    if mode in MODES:
        from search_routing.interfaces.oneshot import main as run_oneshot_main

        sys.exit(run_oneshot_main(argv))

    else:
        print(f"Unknown mode: {mode or '(none)'}")
        print("Usage: python -m search_routing.main [--config PATH] [search|stats|probe] ...")
        sys.exit(1)


if __name__ == "__main__":
    main()
