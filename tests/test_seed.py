from seed import DEMO_LESSONS, seed_lessons


def test_seed_fills_empty_collection(db):
    ids = seed_lessons(db)
    assert len(ids) == len(DEMO_LESSONS)
    assert db.lessons.count_documents({}) == len(DEMO_LESSONS)


def test_seed_skips_populated_collection(db, lesson_id):
    assert seed_lessons(db) == []
    assert db.lessons.count_documents({}) == 1


def test_seed_force(db, lesson_id):
    seed_lessons(db, force=True)
    assert db.lessons.count_documents({}) == len(DEMO_LESSONS) + 1


async def test_seeded_lessons_are_listed(client, db):
    seed_lessons(db)
    resp = await client.get("/lessons")
    assert len(resp.json()) == len(DEMO_LESSONS)
