from pathlib import Path
import sys

sys.path.append(str(Path('.').resolve()))

from rankboard.logic import backend_from_config

def main() -> None:
    challenge_id = int(sys.argv[1])
    backend = backend_from_config('script')

    ch = backend.challenges.require(challenge_id)
    print(f'# {ch.title}')
    print('rank\tuser_id\tusername\tsubmission_id\tn_scores\ttotal_score')

    for e in backend.leaderboard.compute_leaderboard(challenge_id):
        print(f'{e.rank}\t{e.user_id}\t{e.username}\t{"" if e.submission_id is None else e.submission_id}\t{len(e.scores)}\t{e.total_score}')

if __name__=='__main__':
    main()
