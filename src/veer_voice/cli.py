"""Command-line interface for the voice controller."""

import argparse
import sys

from veer_voice.config import DEFAULT_CONFIG_PATH


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="VEER voice controller - wake word, dictation and speech output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  veer-voice run                         # Interactive console session
  veer-voice config                      # Show configuration and voice settings
  veer-voice set wake.phrase "hey veer"  # Change one setting
  veer-voice set voice.autoSend false    # Disable auto-send after listening
  veer-voice voices                      # List available voices
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    run_parser = subparsers.add_parser("run", help="Run an interactive console voice session")
    run_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides config.yaml setting)",
    )

    subparsers.add_parser("config", help="Show current configuration and voice settings")

    set_parser = subparsers.add_parser("set", help="Update one voice setting")
    set_parser.add_argument("key", help="Setting name (e.g. wake.phrase, voice.rate)")
    set_parser.add_argument("value", help="New value")

    subparsers.add_parser("voices", help="List available voices")

    args = parser.parse_args()

    try:
        if args.command == "run":
            from veer_voice.commands.run import main as run_main

            sys.exit(0 if run_main(config_path=args.config, log_level=args.log_level) else 1)

        elif args.command == "config":
            from veer_voice.commands.show_config import main

            sys.exit(0 if main(config_path=args.config) else 1)

        elif args.command == "set":
            from veer_voice.commands.set_setting import main

            sys.exit(0 if main(args.key, args.value, config_path=args.config) else 1)

        elif args.command == "voices":
            from veer_voice.commands.list_voices import main

            sys.exit(0 if main() else 1)

        else:
            parser.print_help()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
