"""
Tests for the command line front end.
"""
import json

from docmapper import program


def write(tmp_path, name, document):
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def test_diff_prints_update(tmp_path, capsys):
    original = write(tmp_path, "original.json", {"name": "John", "hobbies": ["bike", "skate", "golf"]})
    current = write(tmp_path, "current.json", {"name": "Jane", "hobbies": ["bike", "skate"]})

    assert program.main(["diff", original, current]) == 0

    out = capsys.readouterr().out
    assert '"name": "Jane"' in out
    assert '"hobbies.2": ""' in out
    assert '"$pull"' in out


def test_diff_of_equal_documents(tmp_path, capsys):
    document = write(tmp_path, "same.json", {"name": "John"})

    assert program.main(["diff", document, document]) == 0

    assert "nothing to update" in capsys.readouterr().out


def test_extended_json_identities(tmp_path, capsys):
    oid = {"$oid": "507f1f77bcf86cd799439011"}
    original = write(tmp_path, "original.json", {"_id": oid})
    current = write(tmp_path, "current.json", {"_id": oid, "parent_id": oid})

    program.main(["diff", original, current])

    out = capsys.readouterr().out
    assert '"parent_id"' in out
    assert '"$oid": "507f1f77bcf86cd799439011"' in out
