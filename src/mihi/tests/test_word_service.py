"""Tests for the word service."""
import pytest
from faker import Faker

from mihi.errors import DuplicateEntry
from mihi.models.models import Category

fake = Faker()


def test_create_word(word_service, tag_service) -> None:
    tag_service.create_tag("animals")
    word = word_service.create_word(
        "  lupus, lupī ", translation="wolf", category="noun", weight=7, tags=["animals"]
    )

    assert word.enunciated == "lupus, lupī"
    assert word.category == Category.NOUN
    assert word.weight == 7
    assert [tag.name for tag in word.tags] == ["animals"]


def test_create_duplicate_word(word_service) -> None:
    word_service.create_word("lupus, lupī")
    with pytest.raises(DuplicateEntry):
        word_service.create_word("lupus, lupī")


@pytest.mark.parametrize("weight", [-1, 11])
def test_weight_out_of_range(word_service, weight) -> None:
    with pytest.raises(ValueError):
        word_service.create_word(fake.unique.word(), weight=weight)


def test_create_word_with_unknown_tag(word_service) -> None:
    with pytest.raises(ValueError):
        word_service.create_word(fake.unique.word(), tags=["missing"])


def test_update_word(word_service) -> None:
    word = word_service.create_word("canis, canis")
    updated = word_service.update_word(word.id, translation="dog", category="noun", weight=9)

    assert updated.translation == "dog"
    assert updated.category == Category.NOUN
    assert updated.weight == 9
    assert word_service.update_word(12345, translation="none") is None


def test_delete_word(word_service) -> None:
    word = word_service.create_word("canis, canis")
    assert word_service.delete_word(word.id) is True
    assert word_service.get_word(word.id) is None
    assert word_service.delete_word(word.id) is False


def test_search_words_by_text_and_tag(word_service, tag_service) -> None:
    tag_service.create_tag("lectio I")
    word_service.create_word("rosa, rosae", tags=["lectio I"])
    word_service.create_word("rota, rotae")
    word_service.create_word("amīcus, amīcī", tags=["lectio I"])

    assert [w.enunciated for w in word_service.search_words("ro")] == ["rosa, rosae", "rota, rotae"]
    assert [w.enunciated for w in word_service.search_words(tags=["lectio I"])] == [
        "amīcus, amīcī",
        "rosa, rosae",
    ]
    assert word_service.get_word_count() == 3


def test_attach_and_detach_tag(word_service, tag_service) -> None:
    tag_service.create_tag("verbs")
    word = word_service.create_word("amō, amāre")

    word_service.attach_tag(word.id, "verbs")
    word_service.attach_tag(word.id, "verbs")
    assert [t.name for t in word.tags] == ["verbs"]

    word_service.detach_tag(word.id, "verbs")
    assert word.tags == []


def test_create_word_with_flags(word_service) -> None:
    word = word_service.create_word("sequor, sequī", category="verb", flags=[" Deponent "])

    assert word.flags == {"deponent": True}
    assert word.is_flag_set("deponent") is True
    assert word.is_flag_set("impersonal") is False


def test_create_word_with_unknown_flag(word_service) -> None:
    with pytest.raises(ValueError):
        word_service.create_word(fake.unique.word(), flags=["flying"])


def test_set_and_clear_flag(word_service) -> None:
    word = word_service.create_word("pluit")

    word_service.set_flag(word.id, "impersonal")
    assert word_service.get_word(word.id).is_flag_set("impersonal") is True

    word_service.set_flag(word.id, "impersonal", False)
    assert word_service.get_word(word.id).flags == {}

    with pytest.raises(ValueError):
        word_service.set_flag(word.id, "flying")


def test_update_word_flags(word_service) -> None:
    word = word_service.create_word("nēmō")
    updated = word_service.update_word(word.id, flags=["onlysingular"])

    assert updated.flags == {"onlysingular": True}
    with pytest.raises(ValueError):
        word_service.update_word(word.id, flags=["flying"])
