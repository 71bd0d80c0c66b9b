import sys


def main() -> None:
    # Ensure local package resolution
    sys.path.append('.')
    import scripts.smoke_golden_path as golden
    golden.main()
    import scripts.smoke_chat as chat
    chat.main()


if __name__ == "__main__":
    main()
