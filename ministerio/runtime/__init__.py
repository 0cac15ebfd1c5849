"""CLI shell: argparse routes, auth guard and the page handlers."""
