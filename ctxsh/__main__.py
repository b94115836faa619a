from ctxsh.cli import cli

cli(prog_name="ctxsh")
