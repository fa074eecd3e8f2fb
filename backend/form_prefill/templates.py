"""
Registry of PDF templates and their field-mapping tables.

Only a subset of the form catalog has a fillable PDF template. Each template
is described by a `TemplateDescriptor` whose `rules` map PDF field names to an
ordered list of candidate FormData keys. Real-world templates name their
fields inconsistently (`Textfield-3`, `form1[0].#subform[0].Field11[0]`) and
rename them between revisions, so every rule is applied best-effort: a target
missing from the loaded template is logged and skipped.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .catalog import list_form_types
from .errors import FieldWriteError

logger = logging.getLogger(__name__)

TEXT = "text"
RADIO = "radio"


class FormHandle(Protocol):
    """Write access to the fields of a loaded template."""

    def set_text(self, name: str, value: str) -> None:
        ...

    def select_radio(self, name: str, value: str) -> None:
        ...


@dataclass(frozen=True)
class FieldRule:
    target: str
    sources: Tuple[str, ...] = ()
    default: Optional[str] = None
    kind: str = TEXT

    def pick(self, values: Mapping[str, object]) -> Optional[str]:
        """Return the first non-empty source value, else the default."""
        for key in self.sources:
            value = values.get(key)
            if value is None:
                continue
            text = str(value).strip()
            if text:
                return text
        return self.default


@dataclass
class FillReport:
    filled: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    empty: List[str] = field(default_factory=list)


def format_signature_date(day: dt.date) -> str:
    return f"{day.month}/{day.day}/{day.year}"


def derived_values(form_data: Mapping[str, object], today: Optional[dt.date] = None) -> Dict[str, str]:
    """Values computed from the bag that mapping rules may reference."""

    def part(key: str) -> str:
        value = form_data.get(key)
        return str(value).strip() if value is not None else ""

    first, middle, last = part("firstName"), part("middleName"), part("lastName")
    return {
        "fullName": " ".join(p for p in (first, last) if p),
        "fullLegalName": " ".join(p for p in (first, middle, last) if p),
        "signatureDate": format_signature_date(today or dt.date.today()),
    }


def build_values(form_data: Mapping[str, object], today: Optional[dt.date] = None) -> Dict[str, object]:
    """Non-empty form data plus derived values; derived keys are never taken from the bag."""
    values: Dict[str, object] = {
        key: value for key, value in form_data.items() if value is not None and str(value).strip()
    }
    values.update(derived_values(form_data, today))
    return values


def apply_field_rules(
    form: FormHandle,
    rules: Iterable[FieldRule],
    values: Mapping[str, object],
) -> FillReport:
    """Apply each rule independently; missing targets never abort the fill."""
    report = FillReport()
    for rule in rules:
        value = rule.pick(values)
        if not value:
            report.empty.append(rule.target)
            continue
        try:
            if rule.kind == RADIO:
                form.select_radio(rule.target, value)
            else:
                form.set_text(rule.target, value)
        except (FieldWriteError, ValueError, RuntimeError) as exc:
            logger.info("Skipped field write '%s': %s", rule.target, exc)
            report.skipped.append(rule.target)
            continue
        report.filled.append(rule.target)
    return report


@dataclass(frozen=True)
class TemplateDescriptor:
    form_type: str
    template_location: str
    description: str
    rules: Tuple[FieldRule, ...]

    @property
    def target_fields(self) -> List[str]:
        return [rule.target for rule in self.rules]

    def fill(
        self,
        form: FormHandle,
        form_data: Mapping[str, object],
        today: Optional[dt.date] = None,
    ) -> FillReport:
        return apply_field_rules(form, self.rules, build_values(form_data, today))


def _text(target: str, *sources: str, default: Optional[str] = None) -> FieldRule:
    return FieldRule(target, tuple(sources), default, TEXT)


def _radio(target: str, *sources: str) -> FieldRule:
    return FieldRule(target, tuple(sources), None, RADIO)


# HUD-52641 Request for Tenancy Approval
SECTION_8_RULES = (
    _text("Name", "fullName"),
    _text("Tenant", "fullName"),
    _text("Address street_ city_ state_ zip code", "currentAddress", "address"),
    _text("ContractUnitAddress", "currentAddress", "rentalAddress"),
    _text("HouseholdMembers", "householdSize", "householdMembers"),
    _text("Text1", "email", "phone"),
    _text("Textfield-1", "phone"),
    _text("Textfield-2", "email"),
    _text("Textfield-3", "monthlyIncome", "annualIncome"),
    _text("Textfield-4", "assistanceNeeded", "homelessStatus"),
    _text("Textfield-5", "militaryBranch", "veteranStatus"),
    _text("Textfield-6", "dischargeType"),
    _text("Textfield-10", "moveInDate"),
    _text("Textfield-11", "moveOutDate"),
    _text("Print or Type Name of Owner", "landlordName", "fullName"),
    _text("Print or Type Name of PHA", default="Local Public Housing Authority"),
    _text("Signature", "fullName"),
    _text("Signature-0", "fullName"),
    _text("Date mmddyyyy", "signatureDate"),
    _text("Date mmddyyyy-0", "signatureDate"),
)

_VA_8937 = "form1[0].#subform[0]."

# VA Form 26-8937 Verification of VA Benefits
VA_BENEFITS_RULES = (
    _text(_VA_8937 + "TO[0]", default="Department of Veterans Affairs"),
    _text(_VA_8937 + "NAMEOFVETERAN[0]", "fullName"),
    _text(_VA_8937 + "CURRENTADDRESSOFVETERAN[0]", "currentAddress", "address"),
    _text(_VA_8937 + "DOB[0]", "dateOfBirth"),
    _text(_VA_8937 + "SSN[0]", "ssn"),
    _text(_VA_8937 + "VACLAIMNO[0]", "vaFileNumber", "veteranFileNumber"),
    _text(_VA_8937 + "SERVICENUMBER[0]", "militaryBranch"),
    _radio(_VA_8937 + "RadioButtonList[0]", "dischargeType"),
    _text(_VA_8937 + "Signature1[0]", "fullName"),
    _text(_VA_8937 + "DATESIGNED[0]", "signatureDate"),
)

_VA_5655 = "vaco5655[0].#subform[0]."

# VA Form 5655 Financial Status Report. Field2 ("File No.") stays blank.
INCOME_VERIFICATION_RULES = (
    # Section I - personal data
    _text(_VA_5655 + "Field1[0]", "ssn"),
    _text(_VA_5655 + "Field3[0]", "reason", "why", default="Waiver"),
    _text(_VA_5655 + "Field4[0]", "fullLegalName"),
    _text(_VA_5655 + "Field5[0]", "currentAddress", "address"),
    _text(_VA_5655 + "Field6[0]", "phone"),
    _text(_VA_5655 + "Field7[0]", "dateOfBirth"),
    _text(_VA_5655 + "Field9[0]", "spouseName", "spouse"),
    _text(_VA_5655 + "Field10[0]", "dependentAges", "dependentsAges", "agesOfDependents"),
    # Section II - income
    _text(_VA_5655 + "Field11[0]", "monthlyIncome", "annualIncome"),
    _text(_VA_5655 + "Field12[0]", "incomeSource", "employmentStatus"),
    # Section III - expenses
    _text(_VA_5655 + "Field46[0]", "rentOrMortgage"),
    _text(_VA_5655 + "Field47[0]", "foodExpenses"),
    _text(_VA_5655 + "Field48[0]", "utilities"),
    _text(_VA_5655 + "Field49[0]", "otherLivingExpenses"),
    _text(_VA_5655 + "Field50[0]", "installmentPayments"),
    _text(_VA_5655 + "Field51[0]", "totalMonthlyExpenses"),
)

TEMPLATES: Dict[str, TemplateDescriptor] = {
    descriptor.form_type: descriptor
    for descriptor in (
        TemplateDescriptor(
            form_type="section-8",
            template_location="hud-52641-request-for-tenancy-approval.pdf",
            description="HUD Form 52641 Request for Tenancy Approval",
            rules=SECTION_8_RULES,
        ),
        TemplateDescriptor(
            form_type="va-benefits-verification",
            template_location="va-26-8937-benefits-verification.pdf",
            description="VA Form 26-8937 Verification of VA Benefits",
            rules=VA_BENEFITS_RULES,
        ),
        TemplateDescriptor(
            form_type="income-verification",
            template_location="va-5655-financial-status-report.pdf",
            description="VA Form 5655 Financial Status Report",
            rules=INCOME_VERIFICATION_RULES,
        ),
    )
}


def get_template(form_type: str) -> Optional[TemplateDescriptor]:
    return TEMPLATES.get(form_type)


def is_supported(form_type: Optional[str]) -> bool:
    return bool(form_type) and form_type in TEMPLATES


def list_supported_form_types() -> List[str]:
    return list(TEMPLATES)


def list_coming_soon_form_types() -> List[str]:
    return [form_type for form_type in list_form_types() if form_type not in TEMPLATES]
