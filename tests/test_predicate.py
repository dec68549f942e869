import pytest

from core.domain.models import Qual
from core.errors import MissingKeyFilter, UnsupportedPredicate
from core.services.predicate import extract_lookup_key


def eq(value, field: str = "email") -> Qual:
    return Qual(field=field, operator="=", value=value)


def test_single_equality_returns_normalized_key() -> None:
    assert extract_lookup_key([eq(" Alex@Example.com ")]) == "alex@example.com"


def test_quals_on_other_columns_are_ignored() -> None:
    quals = [eq("alex@example.com"), Qual(field="company", operator="<>", value="x")]
    assert extract_lookup_key(quals) == "alex@example.com"


def test_no_key_filter_is_missing_key() -> None:
    with pytest.raises(MissingKeyFilter):
        extract_lookup_key([])
    with pytest.raises(MissingKeyFilter):
        extract_lookup_key([Qual(field="display_name", operator="=", value="Alex")])


def test_two_equalities_are_rejected() -> None:
    with pytest.raises(UnsupportedPredicate):
        extract_lookup_key([eq("a@example.com"), eq("b@example.com")])


def test_in_list_is_rejected() -> None:
    qual = Qual(field="email", operator="=", value=["a@example.com", "b@example.com"], use_or=True)
    with pytest.raises(UnsupportedPredicate, match="Multiple values"):
        extract_lookup_key([qual])


@pytest.mark.parametrize("operator", ["<>", "like", ">", "~~"])
def test_non_equality_operator_is_rejected(operator: str) -> None:
    with pytest.raises(UnsupportedPredicate, match="not supported"):
        extract_lookup_key([Qual(field="email", operator=operator, value="a@example.com")])


def test_non_text_or_blank_values_are_rejected() -> None:
    with pytest.raises(UnsupportedPredicate):
        extract_lookup_key([eq(42)])
    with pytest.raises(UnsupportedPredicate):
        extract_lookup_key([eq("   ")])
