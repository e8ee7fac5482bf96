"""
Stacked isolation: a docker container on a remote host, inside a local
screen session.

Only level 1 (screen) is started from here. Screen runs start-command
again for "ssh docker", and the ssh level does the same for docker, so
start-command must be installed on the remote host too.

Setup:
    pip install -e ..
    export REMOTE=user@build-box

Run:
    python stacked.py
"""

import asyncio
import os

from dotenv import load_dotenv

from startcmd import (
    IsolationDispatcher,
    StartConfig,
    WrapperOptions,
    build_next_level_command,
    format_isolation_chain,
    setup_logging,
    validate_options,
)

load_dotenv()


async def main():
    config = StartConfig.from_env()
    setup_logging(level=config.log_level, log_file=config.log_file)

    remote = os.getenv("REMOTE", "user@localhost")
    options = validate_options(WrapperOptions(
        isolated="screen ssh docker",
        endpoint=f"_ {remote} _",
        image="_ _ alpine:latest",
    ))

    command = "uname -a"
    print(f"Stack: {format_isolation_chain(options.isolated_stack, options.image_stack, options.endpoint_stack)}")
    print(f"Screen will run: {build_next_level_command(options, command, config.wrapper_command)}")

    result = await IsolationDispatcher(config).run(options, command)
    print(f"\nSuccess: {result.success}, exit code: {result.effective_exit_code}")
    print(result.message)


if __name__ == "__main__":
    asyncio.run(main())
