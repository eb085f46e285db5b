"""Remote debugging: signed file uploads and a restricted command channel."""

from __future__ import annotations

import gzip
import hashlib
import logging
import os
import posixpath
import shutil
import socket
import subprocess
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils
from cryptography.hazmat.primitives.serialization import load_pem_public_key

from .paths import get_ytfs_path

log = logging.getLogger(__name__)

SIGNED_MESSAGE = b"yotta debug"
ALLOWED_FILES = frozenset({"index.db", "config.json", "output.log"})
ALLOWED_COMMANDS = frozenset({"ls", "cat", "head", "tail", "echo"})


class PermissionDenied(Exception):
    """The request is not signed or asks for something not allowed."""

    def __init__(self, message: str = "403") -> None:
        super().__init__(message)


@dataclass
class DownloadRequest:
    """A request to upload one of the node's files to a collection server."""

    name: str
    server_url: str
    gzip: bool = False
    sig: bytes = b""


def compress(name: str) -> str:
    """Gzip a file to <name>.gz with the same mode; return the new path."""
    info = os.stat(name)
    target = f"{name}.gz"
    with open(name, "rb") as source, open(target, "wb") as raw:
        with gzip.GzipFile(filename=os.path.basename(name), mode="wb", fileobj=raw) as zipped:
            shutil.copyfileobj(source, zipped)
    os.chmod(target, info.st_mode & 0o7777)
    return target


def compress_ytfs_file(name: str) -> str:
    """Gzip a file in the storage directory."""
    return compress(os.path.join(get_ytfs_path(), name))


def verify(sig: bytes, public_key_pem: str | bytes) -> bool:
    """Check an RSA PKCS#1 v1.5 MD5 signature over the debug message."""
    if isinstance(public_key_pem, str):
        public_key_pem = public_key_pem.encode("ascii")
    try:
        public_key = load_pem_public_key(public_key_pem)
    except (ValueError, TypeError):
        return False
    if not isinstance(public_key, rsa.RSAPublicKey):
        return False
    digest = hashlib.md5(SIGNED_MESSAGE).digest()
    try:
        public_key.verify(sig, digest, padding.PKCS1v15(), utils.Prehashed(hashes.MD5()))
    except (InvalidSignature, ValueError):
        return False
    return True


def upload_ytfs_file(name: str, addr: str, compress_file: bool, index_id: int) -> None:
    """POST a storage-directory file (optionally gzipped) to addr.

    Missing files raise OSError; transfer failures are only logged.
    """
    remote_name = f"upload/{index_id}-{name}"
    local = os.path.join(get_ytfs_path(), name)
    if compress_file:
        remote_name += ".gz"
        local = compress_ytfs_file(name)
    with open(local, "rb") as source:
        body = source.read()
    url = "http://" + posixpath.normpath(posixpath.join(addr, remote_name))
    request = urllib.request.Request(
        url, data=body, method="POST", headers={"Content-Type": "application/octet-stream"}
    )
    try:
        with urllib.request.urlopen(request, timeout=60) as response:
            response.read()
    except (urllib.error.URLError, OSError) as err:
        log.warning("upload %s failed: %s", url, err)
    log.info("[debug] uploaded %s", url)


def handle_download(request: DownloadRequest, public_key_pem: str | bytes, index_id: int) -> None:
    """Serve a signed download request; raise PermissionDenied otherwise."""
    log.info("[debug] download request")
    if not verify(request.sig, public_key_pem):
        raise PermissionDenied()
    if request.name not in ALLOWED_FILES:
        raise PermissionDenied()
    upload_ytfs_file(request.name, request.server_url, request.gzip, index_id)


def run_debug_command(line: str, cwd: str) -> bytes | None:
    """Run one whitelisted command line and return its output plus a newline.

    Anything after a "|" is dropped; commands outside the whitelist give None.
    """
    args = line.split("|")[0].split(" ")
    log.info("[remote debug] %s", args)
    if args[0] not in ALLOWED_COMMANDS:
        return None
    try:
        completed = subprocess.run(
            args, cwd=cwd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
        output = completed.stdout
    except OSError:
        output = b""
    return output + b"\n"


def _serve_commands(conn: socket.socket) -> None:
    with conn, conn.makefile("rb") as reader:
        for raw in reader:
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            output = run_debug_command(line, get_ytfs_path())
            if output is None:
                continue
            try:
                conn.sendall(output)
            except OSError:
                return


def start_remote_debug(server_url: str, sig: bytes, public_key_pem: str | bytes) -> threading.Thread:
    """Connect to a debug server and answer its commands in the background."""
    log.info("[debug] starting remote debug")
    if not verify(sig, public_key_pem):
        raise PermissionDenied()
    host, _, port = server_url.rpartition(":")
    if not host or not port.isdigit():
        raise ValueError(f"invalid server address {server_url!r}")
    conn = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        conn.connect((host, int(port)))
    except OSError:
        conn.close()
        raise
    worker = threading.Thread(target=_serve_commands, args=(conn,), daemon=True)
    worker.start()
    return worker