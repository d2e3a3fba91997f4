import time
from pathlib import Path
from typing import Callable, Dict, List, Set, Literal

from ..errors import InvalidParam
from .. import utils

Bucket = Literal['avatars', 'submissions']

class Uploads:
    """Avatar images and submission PDFs on disk, referenced by filename only.

    The database is the source of truth: removals are best-effort and never
    fail the operation that triggered them.
    """

    BUCKETS: List[Bucket] = ['avatars', 'submissions']

    PDF_MAGIC = b'%PDF-'
    IMAGE_MAGICS: Dict[bytes, str] = {
        b'\xff\xd8\xff': '.jpg',
        b'\x89PNG\r\n\x1a\n': '.png',
        b'GIF87a': '.gif',
        b'GIF89a': '.gif',
    }

    def __init__(
        self,
        root: Path,
        log: Callable[[utils.LogLevel, str, str], None],
        submission_max_size: int,
        avatar_max_size: int,
    ):
        self.root: Path = root
        self.log = log
        self.submission_max_size = submission_max_size
        self.avatar_max_size = avatar_max_size

        for bucket in self.BUCKETS:
            self.bucket_path(bucket).mkdir(parents=True, exist_ok=True)

    def bucket_path(self, bucket: Bucket) -> Path:
        return self.root / bucket

    def path(self, bucket: Bucket, filename: str) -> Path:
        if not filename or Path(filename).name!=filename or filename.startswith('.'):
            raise InvalidParam('invalid filename')
        return self.bucket_path(bucket) / filename

    def _write(self, bucket: Bucket, filename: str, data: bytes) -> str:
        p = self.path(bucket, filename)
        with p.open('xb') as f:
            f.write(data)
        self.log('debug', 'uploads.write', f'stored {bucket}/{filename} ({utils.format_size(len(data))})')
        return filename

    def save_submission(self, challenge_id: int, user_id: int, data: bytes, original_name: str) -> str:
        if ' ' in original_name:
            raise InvalidParam('filename must not contain spaces')
        if len(data)>self.submission_max_size:
            raise InvalidParam(f'file is too large (max {utils.format_size(self.submission_max_size)})')
        if not data.startswith(self.PDF_MAGIC):
            raise InvalidParam('invalid PDF file, it appears to be corrupted or not a real PDF')

        filename = f'submission_{user_id}_{challenge_id}_{int(1000*time.time())}_{utils.gen_random_str(6)}.pdf'
        return self._write('submissions', filename, data)

    def save_avatar(self, user_id: int, data: bytes, original_name: str) -> str:
        if len(data)>self.avatar_max_size:
            raise InvalidParam(f'file is too large (max {utils.format_size(self.avatar_max_size)})')

        for magic, ext in self.IMAGE_MAGICS.items():
            if data.startswith(magic):
                break
        else:
            raise InvalidParam('invalid image file, only JPEG, PNG and GIF are allowed')

        self.log('debug', 'uploads.save_avatar', f'avatar for U#{user_id} uploaded as {original_name!r}')
        filename = f'avatar_{user_id}_{int(1000*time.time())}_{utils.gen_random_str(6)}{ext}'
        return self._write('avatars', filename, data)

    def remove(self, bucket: Bucket, filename: str) -> bool:
        try:
            self.path(bucket, filename).unlink()
        except FileNotFoundError:
            return False
        except (OSError, InvalidParam) as e:
            self.log('error', 'uploads.remove', f'cannot delete {bucket}/{filename}: {e!r}')
            return False

        self.log('debug', 'uploads.remove', f'deleted {bucket}/{filename}')
        return True

    def sweep_orphans(self, bucket: Bucket, known_filenames: Set[str]) -> List[str]:
        removed = []
        for p in sorted(self.bucket_path(bucket).iterdir()):
            if p.is_file() and p.name not in known_filenames:
                if self.remove(bucket, p.name):
                    removed.append(p.name)

        if removed:
            self.log('info', 'uploads.sweep_orphans', f'removed {len(removed)} orphan file(s) from {bucket}')
        return removed
