import datetime as dt

import pytest

from form_prefill.catalog import list_form_types
from form_prefill.errors import FieldWriteError
from form_prefill.templates import (
    RADIO,
    FieldRule,
    apply_field_rules,
    build_values,
    derived_values,
    format_signature_date,
    get_template,
    is_supported,
    list_coming_soon_form_types,
    list_supported_form_types,
)


class FakeForm:
    """In-memory form handle that knows a fixed set of field names."""

    def __init__(self, fields=(), radios=None):
        self.fields = set(fields)
        self.radios = radios or {}
        self.values = {}

    def set_text(self, name, value):
        if name not in self.fields:
            raise FieldWriteError(name)
        self.values[name] = value

    def select_radio(self, name, value):
        options = self.radios.get(name)
        if options is None:
            raise FieldWriteError(name)
        if value not in options:
            raise FieldWriteError(name, f"no option '{value}'")
        self.values[name] = value


def test_supported_form_types():
    assert is_supported("section-8")
    assert is_supported("va-benefits-verification")
    assert is_supported("income-verification")
    assert not is_supported("hud-vash")
    assert not is_supported("")
    assert not is_supported(None)
    assert list_supported_form_types() == ["section-8", "va-benefits-verification", "income-verification"]


def test_coming_soon_is_the_rest_of_the_catalog():
    coming_soon = list_coming_soon_form_types()
    assert coming_soon == ["hud-vash", "ssvf-intake", "standard-rental", "landlord-verification"]
    assert set(coming_soon) | set(list_supported_form_types()) == set(list_form_types())


def test_templates_belong_to_catalog():
    for form_type in list_supported_form_types():
        assert form_type in list_form_types()


@pytest.mark.parametrize(
    "rule, values, expected",
    [
        (FieldRule("T", ("a", "b")), {"a": "x", "b": "y"}, "x"),
        (FieldRule("T", ("a", "b")), {"a": "", "b": "y"}, "y"),
        (FieldRule("T", ("a", "b")), {"a": "   ", "b": "y"}, "y"),
        (FieldRule("T", ("a", "b")), {"a": None, "b": "y"}, "y"),
        (FieldRule("T", ("a",)), {"a": " x "}, "x"),
        (FieldRule("T", ("a",)), {"a": 3}, "3"),
        (FieldRule("T", ("a",)), {}, None),
        (FieldRule("T", ("a",), default="D"), {}, "D"),
        (FieldRule("T", ("a",), default="D"), {"a": "x"}, "x"),
        (FieldRule("T", (), default="D"), {"a": "x"}, "D"),
    ],
)
def test_rule_pick(rule, values, expected):
    assert rule.pick(values) == expected


def test_signature_date_format():
    assert format_signature_date(dt.date(2024, 3, 5)) == "3/5/2024"
    assert format_signature_date(dt.date(2024, 12, 25)) == "12/25/2024"


def test_derived_values():
    values = derived_values({"firstName": "Jane", "middleName": "Q", "lastName": "Doe"}, dt.date(2024, 3, 5))
    assert values == {"fullName": "Jane Doe", "fullLegalName": "Jane Q Doe", "signatureDate": "3/5/2024"}


def test_derived_values_without_names():
    values = derived_values({"lastName": "Doe"}, dt.date(2024, 3, 5))
    assert values["fullName"] == "Doe"
    assert values["fullLegalName"] == "Doe"


def test_missing_targets_are_skipped():
    form = FakeForm(fields={"A"})
    rules = [FieldRule("A", ("x",)), FieldRule("B", ("x",)), FieldRule("C", ("y",))]

    report = apply_field_rules(form, rules, {"x": "1"})

    assert form.values == {"A": "1"}
    assert report.filled == ["A"]
    assert report.skipped == ["B"]
    assert report.empty == ["C"]


def test_radio_rules():
    form = FakeForm(radios={"R": {"Honorable", "General"}})
    rules = [FieldRule("R", ("dischargeType",), kind=RADIO)]

    assert apply_field_rules(form, rules, {"dischargeType": "General"}).filled == ["R"]
    assert form.values == {"R": "General"}

    report = apply_field_rules(form, rules, {"dischargeType": "Dishonorable"})
    assert report.skipped == ["R"]
    assert form.values == {"R": "General"}


def test_section_8_mapping():
    descriptor = get_template("section-8")
    form = FakeForm(fields=descriptor.target_fields)
    form_data = {
        "firstName": "Jane",
        "lastName": "Doe",
        "phone": "555-0100",
        "email": "",
        "annualIncome": "24000",
        "currentAddress": "1 Main, CA",
        "householdSize": "3",
    }

    descriptor.fill(form, form_data, today=dt.date(2024, 3, 5))

    assert form.values["Name"] == "Jane Doe"
    assert form.values["Tenant"] == "Jane Doe"
    assert form.values["Text1"] == "555-0100"
    assert form.values["Textfield-3"] == "24000"
    assert form.values["Address street_ city_ state_ zip code"] == "1 Main, CA"
    assert form.values["Print or Type Name of Owner"] == "Jane Doe"
    assert form.values["Print or Type Name of PHA"] == "Local Public Housing Authority"
    assert form.values["Date mmddyyyy"] == "3/5/2024"
    assert "Textfield-2" not in form.values


def test_va_benefits_mapping():
    descriptor = get_template("va-benefits-verification")
    prefix = "form1[0].#subform[0]."
    form = FakeForm(
        fields=[t for t in descriptor.target_fields if "RadioButtonList" not in t],
        radios={prefix + "RadioButtonList[0]": {"Honorable"}},
    )

    report = descriptor.fill(
        form,
        {"firstName": "Jane", "lastName": "Doe", "ssn": "123-45-6789", "dischargeType": "Honorable"},
        today=dt.date(2024, 3, 5),
    )

    assert form.values[prefix + "TO[0]"] == "Department of Veterans Affairs"
    assert form.values[prefix + "NAMEOFVETERAN[0]"] == "Jane Doe"
    assert form.values[prefix + "RadioButtonList[0]"] == "Honorable"
    assert form.values[prefix + "DATESIGNED[0]"] == "3/5/2024"
    assert report.skipped == []


def test_income_verification_mapping():
    descriptor = get_template("income-verification")
    prefix = "vaco5655[0].#subform[0]."
    form = FakeForm(fields=descriptor.target_fields)

    descriptor.fill(
        form,
        {"firstName": "Jane", "middleName": "Q", "lastName": "Doe", "monthlyIncome": "", "employmentStatus": "Retired"},
    )

    assert form.values[prefix + "Field3[0]"] == "Waiver"
    assert form.values[prefix + "Field4[0]"] == "Jane Q Doe"
    assert form.values[prefix + "Field12[0]"] == "Retired"
    assert prefix + "Field11[0]" not in form.values


def test_derived_values_ignore_saved_keys():
    descriptor = get_template("section-8")
    form = FakeForm(fields=descriptor.target_fields)
    form_data = {
        "fullName": "Jane Public",
        "signatureDate": "1/1/1999",
        "firstName": "Jane",
        "lastName": "Doe",
    }

    descriptor.fill(form, form_data, today=dt.date(2024, 3, 5))

    assert form.values["Name"] == "Jane Doe"
    assert form.values["Date mmddyyyy"] == "3/5/2024"


def test_build_values_keeps_non_empty_form_data():
    values = build_values({"phone": "555-0100", "email": "  ", "fax": None}, dt.date(2024, 3, 5))

    assert values["phone"] == "555-0100"
    assert "email" not in values
    assert "fax" not in values
    assert values["signatureDate"] == "3/5/2024"
