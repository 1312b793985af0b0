"""Click entry point: all commands."""

import sys
import time

import click

from command_utils import __version__, config, log, process
from command_utils.errors import CommandError
from command_utils.log import LEVELS

LEVEL_CHOICE = click.Choice(LEVELS)


def _parse_env(pairs: tuple[str, ...]) -> dict[str, str] | None:
    if not pairs:
        return None
    env = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--env")
        env[key] = value
    return env


def _execute(command, env, options: process.LoggerOptions) -> int:
    """Run one command through logger_exec. Returns exit code."""
    try:
        process.logger_exec(command, options, env=env)
    except CommandError as e:
        log.error(str(e))
        return e.exit_code
    return 0


@click.group()
@click.version_option(version=__version__, prog_name="command-utils")
def main():
    """Run commands, streaming their output line by line to the log."""


@main.command(name="exec", context_settings={"ignore_unknown_options": True})
@click.option("--env", "env_pairs", multiple=True, help="Extra environment variable (KEY=VALUE)")
@click.option("--stdout-level", type=LEVEL_CHOICE, default="info", help="Log level for stdout lines")
@click.option("--stderr-level", type=LEVEL_CHOICE, default="error", help="Log level for stderr lines")
@click.option("--stdout-prefix", default="", help="Prefix for stdout lines")
@click.option("--stderr-prefix", default="", help="Prefix for stderr lines")
@click.option("--shell", is_flag=True, help="Join the arguments as typed and run them through /bin/sh")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def exec_cmd(env_pairs, stdout_level, stderr_level, stdout_prefix, stderr_prefix, shell, command):
    """Run a single command, logging its output."""
    if not command:
        click.echo("Error: No command specified", err=True)
        sys.exit(1)
    env = _parse_env(env_pairs)
    options = process.LoggerOptions(
        sink=log.emit,
        stdout_level=stdout_level,
        stderr_level=stderr_level,
        stdout_prefix=stdout_prefix,
        stderr_prefix=stderr_prefix,
    )
    cmd = " ".join(command) if shell else list(command)
    sys.exit(_execute(cmd, env, options))


@main.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.option("--job", multiple=True, help="Run only specific job(s)")
def run(config_file, job):
    """Run the jobs in CONFIG_FILE in order, stopping at the first failure."""
    try:
        jobs = config.load_jobs(config_file)
    except config.ConfigError as e:
        log.error(str(e))
        sys.exit(1)

    if job:
        jobs = [j for j in jobs if j.name in job]
    if not jobs:
        log.error("No jobs to run")
        sys.exit(1)

    for j in jobs:
        log.header(j.name)
        start = time.time()
        options = process.LoggerOptions(
            sink=log.emit,
            stdout_level=j.stdout_level,
            stderr_level=j.stderr_level,
            stdout_prefix=j.stdout_prefix,
            stderr_prefix=j.stderr_prefix,
        )
        code = _execute(j.command, j.env, options)
        if code != 0:
            log.footer(f"{j.name} FAILED ({code})")
            sys.exit(code)
        log.footer(f"{j.name} complete ({time.time() - start:.1f}s)")


if __name__ == "__main__":
    main()
