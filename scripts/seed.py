from flix.db.session import engine, init_db
from flix.db.seed import seed_all
from sqlmodel import Session


def run_seed():
    init_db()
    with Session(engine) as session:
        seed_all(session=session, seed_path="flix/db/seed_data.yaml")


if __name__ == "__main__":
    run_seed()
