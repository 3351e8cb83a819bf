from lineagectl.cli import cli

cli()
