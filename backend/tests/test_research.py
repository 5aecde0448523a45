"""Research papers: upload, listing, and author-only edit / delete."""

import io
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.storage import LocalArtifactStorage
from models.activity_log import ActivityLog
from models.paper import ResearchPaper
from research.service import PaperService

PDF = b"%PDF-1.4\n% test paper\n"


def _upload(client, author_id, title="Quantum Widgets", tags="quantum, ai", name="paper.pdf", **extra):
    data = {"title": title, "abstract": "We build widgets.", "tags": tags, "authorId": author_id, "authorName": "Ana"}
    data.update(extra)
    return client.post(
        "/api/research/upload",
        data=data,
        files={"paper": (name, PDF, "application/pdf")},
    )


def _fetch(client, url):
    return client.get(url)


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


def test_upload_stores_paper_and_file(client, signup):
    ana = signup()["user"]

    response = _upload(client, ana["_id"])

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Research paper uploaded successfully"
    paper = body["paper"]
    assert paper["title"] == "Quantum Widgets"
    assert paper["abstract"] == "We build widgets."
    assert paper["tags"] == ["quantum", "ai"]
    assert paper["authorId"] == ana["_id"]
    assert paper["authorName"] == "Ana"
    assert paper["fileUrl"].startswith("http://testserver/uploads/papers/")
    assert paper["fileUrl"].endswith("-paper.pdf")

    served = _fetch(client, paper["fileUrl"])
    assert served.status_code == 200
    assert served.content == PDF


def test_upload_requires_title(client, signup):
    ana = signup()["user"]

    response = _upload(client, ana["_id"], title="   ")

    assert response.status_code == 400
    assert response.json()["message"] == "Title and file are required"


def test_upload_requires_file(client, signup, database):
    ana = signup()["user"]

    response = client.post("/api/research/upload", data={"title": "No file", "authorId": ana["_id"]})

    assert response.status_code == 400
    assert response.json()["message"] == "Title and file are required"
    with database.session() as db:
        assert db.query(ResearchPaper).count() == 0


def test_upload_without_author_is_anonymous(client):
    response = client.post(
        "/api/research/upload",
        data={"title": "Orphan"},
        files={"paper": ("orphan.pdf", PDF, "application/pdf")},
    )

    assert response.status_code == 201
    paper = response.json()["paper"]
    assert paper["authorId"] == "anonymous"
    assert paper["authorName"] == "Anonymous"
    assert paper["tags"] == []


def test_upload_accepts_user_id_field(client, signup):
    ana = signup()["user"]

    response = client.post(
        "/api/research/upload",
        data={"title": "Via userId", "userId": ana["_id"]},
        files={"paper": ("p.pdf", PDF, "application/pdf")},
    )

    assert response.json()["paper"]["authorId"] == ana["_id"]


def test_upload_sanitizes_stored_filename(client, signup):
    ana = signup()["user"]

    response = _upload(client, ana["_id"], name="../../etc/my paper (final).pdf")

    url = response.json()["paper"]["fileUrl"]
    stored_name = url.rsplit("/", 1)[1]
    assert "/" not in stored_name and " " not in stored_name
    assert stored_name.endswith("-my_paper_final_.pdf")


def test_upload_is_recorded_in_activity(client, signup, database):
    ana = signup()["user"]

    _upload(client, ana["_id"])

    with database.session() as db:
        entry = db.query(ActivityLog).filter(ActivityLog.action == "Paper Uploaded").one()
        assert entry.user_id == ana["_id"]
        assert "Quantum Widgets" in entry.details


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------


def test_list_is_newest_first_and_filterable(client, signup):
    ana = signup()["user"]
    ben = signup("Ben", "ben@x.com", "benpw")["user"]
    _upload(client, ana["_id"], title="First")
    _upload(client, ben["_id"], title="Second")
    _upload(client, ana["_id"], title="Third")

    everything = client.get("/api/research").json()
    assert [p["title"] for p in everything] == ["Third", "Second", "First"]

    mine = client.get("/api/research", params={"authorId": ana["_id"]}).json()
    assert [p["title"] for p in mine] == ["Third", "First"]


def test_list_empty(client):
    response = client.get("/api/research")

    assert response.status_code == 200
    assert response.json() == []


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------


def test_author_can_edit_metadata_and_keep_file(client, signup):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.put(
        f"/api/research/{paper['_id']}",
        data={"userId": ana["_id"], "title": "Better Widgets", "tags": "robotics"},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Research paper updated successfully"
    edited = response.json()["paper"]
    assert edited["title"] == "Better Widgets"
    assert edited["tags"] == ["robotics"]
    assert edited["abstract"] == "We build widgets."
    assert edited["fileUrl"] == paper["fileUrl"]
    assert edited["updatedAt"] is not None


def test_edit_with_new_file_replaces_old_artifact(client, signup):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.put(
        f"/api/research/{paper['_id']}",
        data={"userId": ana["_id"]},
        files={"paper": ("v2.pdf", b"%PDF-1.4 v2", "application/pdf")},
    )

    new_url = response.json()["paper"]["fileUrl"]
    assert new_url != paper["fileUrl"]
    assert _fetch(client, new_url).content == b"%PDF-1.4 v2"
    assert _fetch(client, paper["fileUrl"]).status_code == 404


def test_edit_rejects_blank_title(client, signup):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.put(f"/api/research/{paper['_id']}", data={"userId": ana["_id"], "title": " "})

    assert response.status_code == 400
    assert response.json()["message"] == "Title cannot be empty"


def test_non_author_cannot_edit(client, signup, database):
    ana = signup()["user"]
    mallory = signup("Mallory", "mallory@x.com", "evil")["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.put(
        f"/api/research/{paper['_id']}",
        data={"userId": mallory["_id"], "title": "Hijacked"},
    )

    assert response.status_code == 403
    assert response.json()["message"] == "You can only modify your own research"
    with database.session() as db:
        assert db.get(ResearchPaper, paper["_id"]).title == "Quantum Widgets"


def test_edit_without_caller_is_forbidden(client, signup):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.put(f"/api/research/{paper['_id']}", data={"title": "Nobody"})

    assert response.status_code == 403


def test_edit_unknown_paper_is_not_found(client, signup):
    ana = signup()["user"]

    response = client.put(f"/api/research/{'0' * 32}", data={"userId": ana["_id"], "title": "x"})

    assert response.status_code == 404
    assert response.json()["message"] == "Paper not found"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def test_author_can_delete_paper_and_file(client, signup, database):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.request("DELETE", f"/api/research/{paper['_id']}", json={"userId": ana["_id"]})

    assert response.status_code == 200
    assert response.json() == {"message": "Research paper deleted successfully"}
    assert client.get("/api/research").json() == []
    assert _fetch(client, paper["fileUrl"]).status_code == 404
    with database.session() as db:
        assert db.query(ActivityLog).filter(ActivityLog.action == "Paper Deleted").count() == 1


def test_delete_accepts_query_parameter(client, signup):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.delete(f"/api/research/{paper['_id']}", params={"userId": ana["_id"]})

    assert response.status_code == 200


def test_non_author_cannot_delete(client, signup):
    ana = signup()["user"]
    mallory = signup("Mallory", "mallory@x.com", "evil")["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    response = client.request("DELETE", f"/api/research/{paper['_id']}", json={"userId": mallory["_id"]})

    assert response.status_code == 403
    assert [p["_id"] for p in client.get("/api/research").json()] == [paper["_id"]]
    assert _fetch(client, paper["fileUrl"]).status_code == 200


def test_delete_unknown_paper_is_not_found(client, signup):
    ana = signup()["user"]

    response = client.request("DELETE", f"/api/research/{'f' * 32}", json={"userId": ana["_id"]})

    assert response.status_code == 404


def test_artifact_removal_failure_does_not_fail_delete(client, signup, monkeypatch):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]

    def broken_discard(self, url):
        raise OSError("disk is read-only")

    monkeypatch.setattr("core.storage.LocalArtifactStorage.discard", broken_discard)

    response = client.request("DELETE", f"/api/research/{paper['_id']}", json={"userId": ana["_id"]})

    assert response.status_code == 200
    assert client.get("/api/research").json() == []


def test_anonymous_papers_cannot_be_modified(client, database):
    paper = client.post(
        "/api/research/upload",
        data={"title": "Orphan"},
        files={"paper": ("orphan.pdf", PDF, "application/pdf")},
    ).json()["paper"]
    assert paper["authorId"] == "anonymous"

    edit = client.put(f"/api/research/{paper['_id']}", data={"userId": "anonymous", "title": "Hijacked"})
    delete = client.request("DELETE", f"/api/research/{paper['_id']}", json={"userId": "anonymous"})

    assert edit.status_code == delete.status_code == 403
    with database.session() as db:
        assert db.get(ResearchPaper, paper["_id"]).title == "Orphan"
        assert db.query(ActivityLog).filter(ActivityLog.action.in_(["Paper Updated", "Paper Deleted"])).count() == 0


def test_non_account_author_ids_own_nothing(client):
    paper = _upload(client, "external-feed").json()["paper"]

    response = client.request("DELETE", f"/api/research/{paper['_id']}", json={"userId": "external-feed"})

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Stored files and failed commits
# ---------------------------------------------------------------------------


def _refuse_commit():
    raise SQLAlchemyError("database went away")


def test_failed_create_removes_stored_file(database, upload_dir, monkeypatch):
    storage = LocalArtifactStorage(upload_dir, "http://testserver")

    with database.session() as db:
        monkeypatch.setattr(db, "commit", _refuse_commit)
        papers = PaperService(db, storage)
        with pytest.raises(SQLAlchemyError):
            papers.create(
                "Lost",
                SimpleNamespace(filename="lost.pdf", file=io.BytesIO(PDF)),
                caller_id="a" * 32,
            )

    assert list(upload_dir.rglob("*.pdf")) == []


def test_failed_edit_keeps_old_file_and_removes_new_one(client, signup, database, upload_dir, monkeypatch):
    ana = signup()["user"]
    paper = _upload(client, ana["_id"]).json()["paper"]
    storage = client.app.state.storage

    with database.session() as db:
        monkeypatch.setattr(db, "commit", _refuse_commit)
        papers = PaperService(db, storage)
        with pytest.raises(SQLAlchemyError):
            papers.edit(
                paper["_id"],
                ana["_id"],
                file=SimpleNamespace(filename="v2.pdf", file=io.BytesIO(b"%PDF v2")),
            )

    stored = [path.name for path in upload_dir.rglob("*.pdf")]
    assert stored == [paper["fileUrl"].rsplit("/", 1)[1]]
    assert client.get("/api/research").json()[0]["fileUrl"] == paper["fileUrl"]
