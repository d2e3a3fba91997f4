from pathlib import Path
import sys

sys.path.append(str(Path('.').resolve()))

from rankboard.logic import backend_from_config
from rankboard.errors import ServiceError
from rankboard.store import UserStore
from rankboard import secret

# input: tsv of username, email, password, role (role may be the display name)

def main() -> None:
    backend = backend_from_config('script')
    backend.init(secret.ROOT_ADMIN_USERNAME, secret.ROOT_ADMIN_EMAIL, secret.ROOT_ADMIN_PASSWORD)

    role_mapping = {
        **{k: k for k, v in UserStore.ROLES.items()},
        **{v: k for k, v in UserStore.ROLES.items()},
    }

    userlist = []
    with open(sys.argv[1], encoding='utf-8') as f:
        for line in f.read().splitlines():
            if not line.strip():
                continue
            username, email, password, role = line.split('\t')
            userlist.append((username.strip(), email.strip(), password.strip(), role_mapping[role.strip()]))

    for username, email, password, role in userlist:
        user = backend.users.get_by_email(email)
        if user is None:
            try:
                user = backend.users.create(username, email, password, role)
            except ServiceError as e:
                raise RuntimeError(f'cannot register {email}: {e.message}')
        print(f'{user.id}\t{user.role_disp()}\t{user.username}\t{user.email}')

if __name__=='__main__':
    main()
