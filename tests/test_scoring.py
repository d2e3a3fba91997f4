import time
import pytest

from rankboard.errors import InvalidParam, NotFound
from rankboard.logic import Backend, ScoringEngine
from rankboard.store import UserStore, ScoreStore

from conftest import make_user, submit_pdf

@pytest.fixture
def sid(backend: Backend, root: UserStore) -> int:
    cid = backend.challenges.create('essay', '', int(time.time())+3600, root.id).id
    alice = make_user(backend, 'alice')
    return submit_pdf(backend, cid, alice.id)

def test_upsert_keeps_one_row(backend: Backend, root: UserStore, sid: int):
    first = backend.scoring.score_or_update(sid, root.id, 70, 'good')
    second = backend.scoring.score_or_update(sid, root.id, 85, 'great')

    assert first.id==second.id
    assert backend.db.count(ScoreStore)==1

    row = backend.db.load_one_data(ScoreStore, first.id)
    assert (row.score, row.feedback) == (85, 'great')
    assert row.updated_ms>=first.updated_ms

def test_each_admin_scores_separately(backend: Backend, root: UserStore, sid: int):
    admin2 = make_user(backend, 'admin2', 'admin')
    backend.scoring.score_or_update(sid, root.id, 1, None)
    backend.scoring.score_or_update(sid, admin2.id, 2, 'ok')

    scores = backend.scoring.scores_for_submission(sid)
    assert [(s['admin_username'], s['score']) for s in scores] == [('root', 1), ('admin2', 2)]

@pytest.mark.parametrize('score', [-1, 1.5, '3', True, None])
def test_invalid_score(backend: Backend, root: UserStore, sid: int, score):
    with pytest.raises(InvalidParam):
        backend.scoring.score_or_update(sid, root.id, score, None)

def test_large_score_accepted(backend: Backend, root: UserStore, sid: int):
    assert backend.scoring.score_or_update(sid, root.id, 10**6, None).score==10**6

def test_feedback_too_long(backend: Backend, root: UserStore, sid: int):
    with pytest.raises(InvalidParam):
        backend.scoring.score_or_update(sid, root.id, 1, 'x'*(ScoreStore.MAX_FEEDBACK_LEN+1))

def test_missing_submission(backend: Backend, root: UserStore):
    with pytest.raises(NotFound):
        backend.scoring.score_or_update(4242, root.id, 1, None)

def test_my_scores_ownership(backend: Backend, root: UserStore, sid: int):
    admin2 = make_user(backend, 'admin2', 'admin')
    backend.scoring.score_or_update(sid, root.id, 30, 'a')
    backend.scoring.score_or_update(sid, admin2.id, 12, None)

    alice = backend.users.get_by_username('alice')
    res = backend.scoring.my_scores(sid, alice.id)
    assert res['submission_id']==sid
    assert res['total_score']==42
    assert [s['admin_username'] for s in res['scores']] == ['root', 'admin2']

    bob = make_user(backend, 'bob')
    with pytest.raises(NotFound):
        backend.scoring.my_scores(sid, bob.id)

def test_my_scores_unscored(backend: Backend, sid: int):
    alice = backend.users.get_by_username('alice')
    assert backend.scoring.my_scores(sid, alice.id)=={'submission_id': sid, 'scores': [], 'total_score': 0}

def test_insert_race_becomes_update(backend: Backend, root: UserStore, sid: int, monkeypatch):
    # another admin session commits a score for the same pair between our lookup and our insert
    raced = []
    def racing_find(session, submission_id, admin_id):
        if not raced:
            raced.append(True)
            with backend.db.SqlSession() as rival:
                rival.add(ScoreStore(submission_id=submission_id, admin_id=admin_id, score=10, feedback='first'))
                rival.commit()
            return None
        return ScoringEngine._find(session, submission_id, admin_id)

    monkeypatch.setattr(backend.scoring, '_find', racing_find)
    score = backend.scoring.score_or_update(sid, root.id, 90, 'second')

    assert raced==[True]
    assert backend.db.count(ScoreStore)==1
    assert (score.score, score.feedback) == (90, 'second')
    assert [(s['score'], s['feedback']) for s in backend.scoring.scores_for_submission(sid)] == [(90, 'second')]
