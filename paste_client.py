#!/usr/bin/env python3
"""
Command line paste bin.

`pastebinit [FILE]` uploads FILE (or stdin) to the server and prints the
paste uri. `pastebinit server [OPTIONS]` runs the server itself.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from paste_config import normalize_base_uri

DEFAULT_URI = "https://paste.j3ss.co/"


class PasteClientError(Exception):
    """Upload failed; the message is meant for the user"""


def post_paste(content: bytes, base_uri: str, username: str, password: str, timeout: float = 30.0) -> str:
    """
    Upload content and return the uri of the new paste.

    Raises:
        PasteClientError: If the request fails or the server reports an error
    """
    url = base_uri + "paste"
    headers = {"Content-Type": "application/octet-stream"}

    try:
        with httpx.Client(timeout=timeout) as client:
            resp = client.post(url, content=content, headers=headers, auth=(username, password))
    except httpx.HTTPError as e:
        raise PasteClientError(f"request to {url} failed: {e}") from e

    if resp.status_code == 401:
        raise PasteClientError(f"Unauthorized. Please check your username and pass. {resp.status_code}")

    if resp.status_code == 413:
        raise PasteClientError(
            f"{resp.status_code}: Payload Too Large. Make sure your proxy or load balancer allows "
            "request bodies as large as any file you wish to accept"
        )

    try:
        response = resp.json()
    except ValueError as e:
        raise PasteClientError(f"parsing body as json failed: {e}") from e

    if not isinstance(response, dict):
        raise PasteClientError(f"unexpected response from server: {resp.text}")

    if "error" in response:
        raise PasteClientError(f"server responded with {response['error']}")

    paste_uri = response.get("uri")
    if not paste_uri:
        raise PasteClientError(f"unexpected response from server: {resp.text}")

    return paste_uri


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pastebinit",
        description="Command line paste bin. Use `pastebinit server --help` to run the server.",
    )
    parser.add_argument("file", nargs="?", default=None, help="file to upload (default: stdin)")
    parser.add_argument("-b", "--uri", default=os.environ.get("PASTEBINIT_URI", DEFAULT_URI),
                        help="pastebin base uri (or env var PASTEBINIT_URI)")
    parser.add_argument("-u", "--username", default=os.environ.get("PASTEBINIT_USERNAME", ""),
                        help="username (or env var PASTEBINIT_USERNAME)")
    parser.add_argument("-p", "--password", default=os.environ.get("PASTEBINIT_PASSWORD", ""),
                        help="password (or env var PASTEBINIT_PASSWORD)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if argv[:1] == ["server"]:
        # Imported here so uploading never needs the server stack
        from pastebinit_server import main as server_main
        return server_main(argv[1:])

    args = build_parser().parse_args(argv)

    if not args.username:
        print("Error: username cannot be empty", file=sys.stderr)
        return 1
    if not args.password:
        print("Error: password cannot be empty", file=sys.stderr)
        return 1

    try:
        if args.file is None:
            content = sys.stdin.buffer.read()
        else:
            content = Path(args.file).read_bytes()
    except OSError as e:
        print(f"Error: reading {args.file or 'stdin'} failed: {e}", file=sys.stderr)
        return 1

    try:
        paste_uri = post_paste(content, normalize_base_uri(args.uri), args.username, args.password)
    except PasteClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Your paste has been uploaded here:\n{paste_uri}\nthe raw object is here: {paste_uri}/raw")
    return 0


if __name__ == "__main__":
    sys.exit(main())
