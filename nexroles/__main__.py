"""
CLI entry point, when used as a module: `python -m nexroles`.

Useful for debugging in the IDEs (use the start-mode "Module", module "nexroles").
"""
from nexroles import cli

if __name__ == '__main__':
    cli.main()
