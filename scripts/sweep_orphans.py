from pathlib import Path
import sys

sys.path.append(str(Path('.').resolve()))

from rankboard.logic import backend_from_config

if __name__=='__main__':
    backend = backend_from_config('script')
    removed = backend.sweep_orphan_files()

    for bucket, filenames in removed.items():
        for fn in filenames:
            print(f'{bucket}/{fn}')
        print(f'{bucket}: {len(filenames)} orphan file(s) removed')
