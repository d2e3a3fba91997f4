import time

from rankboard.logic import Backend
from rankboard.store import UserStore, LogStore

from conftest import make_user, submit_pdf, PDF_DATA, PNG_DATA

def test_telemetry_counts(backend: Backend, root: UserStore):
    alice = make_user(backend, 'alice')
    cid = backend.challenges.create('essay', '', int(time.time())+60, root.id).id
    backend.scoring.score_or_update(submit_pdf(backend, cid, alice.id), root.id, 1, None)

    counts = backend.collect_telemetry()
    assert (counts['users'], counts['challenges'], counts['submissions'], counts['scores']) == (2, 1, 1, 1)

def test_warnings_are_persisted(backend: Backend):
    backend.log('warning', 'test.module', 'something odd')
    backend.log('debug', 'test.module', 'noise')

    logs = [l for l in backend.db.load_all_data(LogStore) if l.module=='test.module']
    assert [(l.level, l.message, l.process) for l in logs] == [('warning', 'something odd', 'test')]

def test_sweep_orphan_files(backend: Backend, root: UserStore):
    alice = make_user(backend, 'alice')
    cid = backend.challenges.create('essay', '', int(time.time())+60, root.id).id
    sid = submit_pdf(backend, cid, alice.id)
    avatar = backend.uploads.save_avatar(alice.id, PNG_DATA, 'a.png')
    backend.users.update_avatar(alice.id, avatar)

    stray_sub = backend.uploads.save_submission(cid, alice.id, PDF_DATA, 'x.pdf')
    stray_avatar = backend.uploads.save_avatar(alice.id, PNG_DATA, 'b.png')

    assert backend.sweep_orphan_files()=={'submissions': [stray_sub], 'avatars': [stray_avatar]}
    assert backend.uploads.path('submissions', backend.submissions.get(sid).filename).is_file()
    assert backend.uploads.path('avatars', avatar).is_file()
