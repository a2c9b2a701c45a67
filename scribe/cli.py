"""Command-line uploader.

Small files go to the server whole.  Larger files are decoded and cut into
time-bounded WAV pieces locally, then sent one by one as chunks of a new
session, which is finished at the end.
"""

import argparse
import logging
import os
import sys

import httpx

from scribe.config import settings
from scribe.errors import DecodeFailed, PayloadTooLarge
from scribe.models import Profile
from scribe.services.splitter import check_size, mime_type_for, split_duration

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """The server rejected a request. Safe to retry the whole upload."""


class UploadClient:
    def __init__(self, http: httpx.Client, user_id: str) -> None:
        self.http = http
        self.headers = {"X-User-Id": user_id}

    def _check(self, resp: httpx.Response, what: str) -> dict:
        if resp.is_error:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise UploadError(f"{what} failed ({resp.status_code}): {detail}")
        return resp.json()

    def upload_whole(self, data: bytes, filename: str, profile: Profile, name: str) -> str:
        resp = self.http.post(
            "/api/uploads",
            headers=self.headers,
            files={"file": (filename, data, mime_type_for(filename))},
            data={"profile": profile.value, "name": name},
        )
        return self._check(resp, "Upload")["session_id"]

    def upload_in_pieces(self, data: bytes, profile: Profile, name: str) -> str:
        pieces = split_duration(data)
        logger.info("Split into %d piece(s)", len(pieces))

        resp = self.http.post(
            "/api/sessions",
            headers=self.headers,
            json={"name": name, "profile": profile.value},
        )
        session_id = self._check(resp, "Creating session")["session"]["id"]

        for piece in pieces:
            logger.info("Sending piece %d of %d", piece.index + 1, piece.total_pieces)
            resp = self.http.post(
                f"/api/sessions/{session_id}/chunks",
                headers=self.headers,
                files={"audio": (piece.filename, piece.data, "audio/wav")},
                data={"seq": str(piece.index), "seconds": str(piece.duration_seconds)},
            )
            self._check(resp, f"Piece {piece.index + 1}")

        resp = self.http.patch(
            f"/api/sessions/{session_id}",
            headers=self.headers,
            json={"action": "finish"},
        )
        self._check(resp, "Finishing session")
        return session_id

    def upload(self, data: bytes, filename: str, profile: Profile, name: str) -> str:
        check_size(len(data))
        if len(data) <= settings.direct_upload_max_bytes:
            return self.upload_whole(data, filename, profile, name)
        return self.upload_in_pieces(data, profile, name)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="scribe-upload")
    parser.add_argument("file", help="Audio file to transcribe.")
    parser.add_argument(
        "--server", default=f"http://{settings.host}:{settings.port}", help="Server URL."
    )
    parser.add_argument("--user", required=True, help="User id sent as X-User-Id.")
    parser.add_argument(
        "--profile",
        choices=[p.value for p in Profile],
        default=Profile.MEETING.value,
        help="Content profile.",
    )
    parser.add_argument("--name", help="Session name. Defaults to the file name.")
    parser.add_argument(
        "--timeout", type=float, default=300.0, help="Per-request timeout in seconds."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with open(args.file, "rb") as f:
        data = f.read()
    filename = os.path.basename(args.file)
    name = args.name or os.path.splitext(filename)[0]

    with httpx.Client(base_url=args.server, timeout=args.timeout) as http:
        client = UploadClient(http, args.user)
        try:
            session_id = client.upload(data, filename, Profile(args.profile), name)
        except PayloadTooLarge as e:
            print(e.message, file=sys.stderr)
            return 2
        except DecodeFailed as e:
            print(f"{e.message}. Try again or convert the file to WAV/FLAC.", file=sys.stderr)
            return 1
        except (UploadError, httpx.HTTPError) as e:
            print(f"{e}. Try again.", file=sys.stderr)
            return 1

    print(session_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
