"""
Saved model library tests.

Tests:
1-3. save rejects blank names and empty bundles
4-6. load returns fresh, non-aliased copies (round trip)
7-8. list / delete / missing ids
"""

import pytest

from pcquote.errors import NotFoundError, ValidationError
from pcquote.line_items import line_from_part, update_line


def _build_lines(catalog):
    return [line_from_part(catalog.find_part(pid)) for pid in ("cpu-1", "mb-1", "ram-1")]


def test_save_requires_name(library, catalog):
    with pytest.raises(ValidationError):
        library.save("", _build_lines(catalog))
    with pytest.raises(ValidationError):
        library.save("   ", _build_lines(catalog))


def test_save_requires_items(library):
    with pytest.raises(ValidationError) as exc:
        library.save("Empty build", [])
    assert "at least one" in str(exc.value)


def test_save_assigns_id_and_trims_name(library, catalog, clock):
    model = library.save("  Intel Budget  ", _build_lines(catalog))
    assert model.id == "MODEL-1"
    assert model.name == "Intel Budget"
    assert model.created_at == clock.now
    assert library.save("Second", _build_lines(catalog)).id == "MODEL-2"


def test_load_round_trip_content_equal_ids_distinct(library, catalog):
    lines = _build_lines(catalog)
    model = library.save("Intel Budget", lines)
    loaded = library.load(model.id)

    def content(line):
        return line.model_dump(exclude={"id"})

    assert [content(li) for li in loaded] == [content(li) for li in lines]
    original_ids = {li.id for li in lines}
    loaded_ids = [li.id for li in loaded]
    assert len(set(loaded_ids)) == len(loaded_ids)
    assert not original_ids & set(loaded_ids)


def test_each_load_gets_new_ids(library, catalog):
    model = library.save("Intel Budget", _build_lines(catalog))
    first = {li.id for li in library.load(model.id)}
    second = {li.id for li in library.load(model.id)}
    assert not first & second
    assert not first & {li.id for li in model.items}


def test_editing_loaded_lines_leaves_model_alone(library, catalog):
    model = library.save("Intel Budget", _build_lines(catalog))
    loaded = library.load(model.id)
    edited = update_line(loaded, loaded[0].id, qty=5, discount=15)

    assert edited[0].qty == 5
    stored = library.get(model.id)
    assert stored.items[0].qty == 1
    assert stored.items[0].discount == 0


def test_list_and_delete(library, catalog):
    a = library.save("A", _build_lines(catalog))
    b = library.save("B", _build_lines(catalog))
    assert [m.id for m in library.list_models()] == [a.id, b.id]

    library.delete(a.id)
    assert [m.id for m in library.list_models()] == [b.id]
    with pytest.raises(NotFoundError):
        library.load(a.id)


def test_delete_missing_model_raises(library):
    with pytest.raises(NotFoundError):
        library.delete("MODEL-404")
