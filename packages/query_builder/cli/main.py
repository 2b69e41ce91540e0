import sys

from query_builder.cli import main_for_package


def main() -> None:
    sys.exit(main_for_package("query-builder", "query_builder"))


if __name__ == "__main__":
    main()
