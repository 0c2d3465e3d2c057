def main() -> int:
    """Entry point for the application.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    from ats_resume_store.cli import main as cli_main

    return cli_main()
