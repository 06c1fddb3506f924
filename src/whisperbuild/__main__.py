from whisperbuild.cli import run

run()
