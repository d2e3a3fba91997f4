import time
from html import escape
from sqlalchemy import select
from typing import Optional, List, Dict, Any

from .base import Database
from .uploads import Uploads
from ..errors import InvalidParam, NotFound
from ..store import ChallengeStore, SubmissionStore, UserStore
from .. import utils

class ChallengeService:
    def __init__(self, db: Database, uploads: Uploads):
        self._db = db
        self._uploads = uploads

    @staticmethod
    def _check_fields(title: Optional[str], description: Optional[str], created_s: Optional[int], deadline_s: Optional[int]) -> None:
        if title is not None:
            err = ChallengeStore.check_title(title)
            if err is not None:
                raise InvalidParam(err)
        if description is not None:
            err = utils.check_template(description)
            if err is not None:
                raise InvalidParam(f'description: {err}')
        if created_s is not None and deadline_s is not None and deadline_s<created_s:
            raise InvalidParam('deadline should not be earlier than creation time')

    @staticmethod
    def _render_description(ch: ChallengeStore) -> str:
        return utils.render_template(ch.description, {'challenge': ch})

    def _check_render(self, ch: ChallengeStore) -> None:
        # parsing alone misses runtime errors such as attribute access on an undefined name
        try:
            self._render_description(ch)
        except Exception as e:
            raise InvalidParam(f'description: cannot render template: {e}')

    def create(self, title: str, description: str, deadline_s: int, creator_id: int, created_s: Optional[int] = None) -> ChallengeStore:
        if created_s is None:
            created_s = int(time.time())
        self._check_fields(title, description, created_s, deadline_s)

        with self._db.SqlSession() as session:
            creator = session.get(UserStore, creator_id)
            if creator is None:
                raise NotFound('creator not found')
            if not creator.is_admin:
                raise InvalidParam('only admins can create challenges')

            ch = ChallengeStore(
                title=title,
                description=description,
                created_s=created_s,
                deadline_s=deadline_s,
                creator_id=creator_id,
            )
            self._check_render(ch)
            session.add(ch)
            session.commit()

        self._db.log('info', 'challenge.create', f'created {ch!r} by U#{creator_id}')
        return ch

    def get(self, challenge_id: int) -> Optional[ChallengeStore]:
        return self._db.load_one_data(ChallengeStore, challenge_id)

    def require(self, challenge_id: int) -> ChallengeStore:
        ch = self.get(challenge_id)
        if ch is None:
            raise NotFound('challenge not found')
        return ch

    def list(self) -> List[ChallengeStore]:
        with self._db.SqlSession() as session:
            return list(session.execute(
                select(ChallengeStore).order_by(ChallengeStore.created_s.desc(), ChallengeStore.id.desc())
            ).scalars().all())

    def update(
        self,
        challenge_id: int,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        created_s: Optional[int] = None,
        deadline_s: Optional[int] = None,
    ) -> ChallengeStore:
        with self._db.SqlSession() as session:
            ch = session.get(ChallengeStore, challenge_id)
            if ch is None:
                raise NotFound('challenge not found')

            self._check_fields(
                title, description,
                created_s if created_s is not None else ch.created_s,
                deadline_s if deadline_s is not None else ch.deadline_s,
            )

            if title is not None:
                ch.title = title
            if description is not None:
                ch.description = description
            if created_s is not None:
                ch.created_s = created_s
            if deadline_s is not None:
                ch.deadline_s = deadline_s

            if description is not None:
                self._check_render(ch) # leaving the session without commit discards the changes

            session.commit()

        self._db.log('info', 'challenge.update', f'updated {ch!r}')
        return ch

    def delete(self, challenge_id: int) -> List[str]:
        """Delete a challenge, its submissions and their scores.

        The rows go first, in one commit; the submission files are removed
        afterwards and a failure there only leaves orphans for the sweeper.
        Returns the filenames that were removed.
        """
        with self._db.SqlSession() as session:
            ch = session.get(ChallengeStore, challenge_id)
            if ch is None:
                raise NotFound('challenge not found')

            filenames = list(session.execute(
                select(SubmissionStore.filename).where(SubmissionStore.challenge_id==challenge_id)
            ).scalars().all())

            ch_repr = repr(ch)
            session.delete(ch)
            session.commit()

        self._db.log('info', 'challenge.delete', f'deleted {ch_repr} with {len(filenames)} submission(s)')
        return [fn for fn in filenames if self._uploads.remove('submissions', fn)]

    def is_active(self, challenge_id: int) -> bool:
        return self.require(challenge_id).is_active()

    def describe(self, ch: ChallengeStore) -> Dict[str, Any]:
        try:
            description_html = self._render_description(ch)
        except Exception as e:
            # rows written before render checks existed, or edited by hand
            self._db.log('warning', 'challenge.describe', f'cannot render description of {ch!r}: {e!r}')
            description_html = f'<pre>{escape(ch.description)}</pre>'

        return {
            **ch.describe_json(),
            'description_html': description_html,
            'deadline_disp': utils.format_timestamp(ch.deadline_s),
        }
