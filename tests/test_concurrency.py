import threading

from fallback_docdb import LocalStore


def _run_threads(n, target):
    threads = [threading.Thread(target=target, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_concurrent_pushes_are_not_lost(tmp_path):
    db = LocalStore(str(tmp_path))
    c = db.collection("enrollment")
    c.insert_one({"year": 2025, "students": []})

    def worker(i):
        for j in range(10):
            c.update_one({"year": 2025}, {"$push": {"students": f"{i}-{j}"}})

    _run_threads(8, worker)

    students = c.find_one({"year": 2025})["students"]
    assert len(students) == 80
    assert len(set(students)) == 80

    reloaded = LocalStore(str(tmp_path)).collection("enrollment").find_one({"year": 2025})
    assert sorted(reloaded["students"]) == sorted(students)


def test_concurrent_inserts_and_first_reference(tmp_path):
    db = LocalStore(str(tmp_path))

    def worker(i):
        # every thread references the table for the first time concurrently
        c = db.collection("staff")
        for j in range(5):
            c.insert_one({"worker": i, "n": j})

    _run_threads(6, worker)

    c = db.collection("staff")
    assert c.count_documents() == 30
    for i in range(6):
        # per-thread insertion order is preserved
        assert [d["n"] for d in c.find({"worker": i})] == list(range(5))
