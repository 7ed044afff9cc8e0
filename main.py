"""topology 콘솔 스크립트 진입점 (pyproject [project.scripts])"""

from cli.app import cli


def main():
    cli(prog_name="topology")


if __name__ == "__main__":
    main()
