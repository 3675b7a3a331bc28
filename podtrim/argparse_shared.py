import argparse
import logging


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def get_base_parser(description: str = "Trim podcast episodes") -> argparse.ArgumentParser:
    # -e is the tail-skip flag, so the env file only has a long form
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--env-file", help="Path to a custom .env file", default=None)
    return parser

def add_log_level_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-l", "--log-level", help="Set log level (DEBUG, INFO, WARNING, ERROR)", default=None)

def add_skip_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--start", type=non_negative_int, default=None, help="Seconds to skip at the start of each episode")
    parser.add_argument("-e", "--end", type=non_negative_int, default=None, help="Seconds to skip at the end of each episode")

def add_url_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-u", "--url", help="Podcast RSS feed URL", required=True)

def add_threads_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-n", "--threads", type=positive_int, default=None, help="Maximum episodes processed at once (default 10)")

def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
