"""Live generation script — streams a component from a running server.

Prints the normalized component (or the error and partial output).  A
follow-up instruction (``--edit``) is sent with the first result as prior
code.

Usage:
    python scripts/generate_component.py "a pricing card with three tiers"
    python scripts/generate_component.py "a login form" --edit "add a remember-me checkbox"
    python scripts/generate_component.py "a navbar" --output src/
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.http_client import ComponentClient  # noqa: E402
from client.session import DOWNLOAD_FILENAME, GenerationSession, SessionState  # noqa: E402


async def run(host: str, prompt: str, edit: str | None, output: str | None = None) -> int:
    session = GenerationSession()
    async with ComponentClient(host) as client:
        for step, instruction in enumerate(filter(None, [prompt, edit]), start=1):
            print(f"[{step}] {instruction}")
            await client.generate(session, instruction, follow_up=step > 1)
            if session.state is not SessionState.COMPLETE:
                print(f"  FAILED — {session.error}")
                if session.code:
                    print("  Partial output kept:")
                    print(session.code)
                return 1
            print(session.code)
            print()
    if output:
        print(f"Saved to {session.save(output)}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Stream a component from the generator service")
    parser.add_argument("prompt", help="Component description")
    parser.add_argument("--edit", default=None, help="Follow-up instruction applied to the result")
    parser.add_argument("--host", default="http://localhost:5000", help="Service URL")
    parser.add_argument(
        "-o",
        "--output",
        nargs="?",
        const=DOWNLOAD_FILENAME,
        default=None,
        help=f"Save the final component (default name: {DOWNLOAD_FILENAME})",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.host, args.prompt, args.edit, args.output)))


if __name__ == "__main__":
    main()
