"""
Simplest possible startcmd example: one command, one tmux session.

Setup:
    pip install -e ..
    # optional: START_DEBUG=1 in a .env file for debug logging

Run:
    python hello.py
"""

import asyncio

from dotenv import load_dotenv

from startcmd import IsolationDispatcher, StartConfig, WrapperOptions, setup_logging, validate_options

load_dotenv()


async def main():
    config = StartConfig.from_env()
    setup_logging(level=config.log_level, log_file=config.log_file)

    options = validate_options(WrapperOptions(isolated="tmux"))
    result = await IsolationDispatcher(config).run(options, "echo hello from tmux; sleep 1")

    print(f"Success: {result.success}")
    print(f"Session: {result.session_name}")
    print(f"Exit code: {result.effective_exit_code}")
    print(result.message)


if __name__ == "__main__":
    asyncio.run(main())
