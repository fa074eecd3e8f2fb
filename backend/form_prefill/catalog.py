"""
Catalog of the logical application forms.

Each `FormDefinition` lists its fields in display order together with the
profile path (`auto_fill_key`) used to pre-populate them. The catalog is the
single source of truth for which fields exist per form type; the PDF template
registry only covers a subset of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

CATEGORIES = ("federal", "state", "local", "general")
FIELD_TYPES = ("text", "email", "phone", "date", "select", "textarea", "ssn", "address")

BRANCH_OPTIONS = ("Army", "Navy", "Air Force", "Marines", "Coast Guard", "Space Force")
DISCHARGE_OPTIONS = ("Honorable", "General", "Other Than Honorable", "Bad Conduct", "Dishonorable")


@dataclass(frozen=True)
class FieldDefinition:
    id: str
    label: str
    type: str = "text"
    required: bool = False
    placeholder: Optional[str] = None
    options: Tuple[str, ...] = ()
    auto_fill_key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Field '{self.id}' has unknown type '{self.type}'")
        if self.type == "select" and not self.options:
            raise ValueError(f"Select field '{self.id}' needs at least one option")
        if self.type != "select" and self.options:
            raise ValueError(f"Field '{self.id}' declares options but is not a select")

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "required": self.required,
        }
        if self.placeholder:
            data["placeholder"] = self.placeholder
        if self.options:
            data["options"] = list(self.options)
        if self.auto_fill_key:
            data["autoFillKey"] = self.auto_fill_key
        return data


@dataclass(frozen=True)
class FormDefinition:
    id: str
    name: str
    description: str
    category: str
    fields: Tuple[FieldDefinition, ...]

    def __post_init__(self) -> None:
        if self.category not in CATEGORIES:
            raise ValueError(f"Form '{self.id}' has unknown category '{self.category}'")
        seen = set()
        for field in self.fields:
            if field.id in seen:
                raise ValueError(f"Form '{self.id}' declares field '{field.id}' twice")
            seen.add(field.id)

    def field(self, field_id: str) -> Optional[FieldDefinition]:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    @property
    def field_ids(self) -> List[str]:
        return [field.id for field in self.fields]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "fields": [field.to_dict() for field in self.fields],
        }


def _text(field_id, label, required=True, key=None, type="text", placeholder=None):
    return FieldDefinition(field_id, label, type, required, placeholder=placeholder, auto_fill_key=key)


def _select(field_id, label, options, required=True, key=None):
    return FieldDefinition(field_id, label, "select", required, options=tuple(options), auto_fill_key=key)


# Identity block shared by most forms.
_FIRST_NAME = _text("firstName", "First Name", key="firstName")
_LAST_NAME = _text("lastName", "Last Name", key="lastName")
_SSN = _text("ssn", "Social Security Number", key="ssn", type="ssn")
_DOB = _text("dateOfBirth", "Date of Birth", key="dateOfBirth", type="date")
_PHONE = _text("phone", "Phone Number", key="phone", type="phone")
_EMAIL = _text("email", "Email", key="email", type="email")


def _address(required=True):
    return _text("currentAddress", "Current Address", required=required, key="address", type="address")


FORM_TYPES: Tuple[FormDefinition, ...] = (
    FormDefinition(
        id="hud-vash",
        name="HUD-VASH Application",
        description="Housing and Urban Development - VA Supportive Housing voucher",
        category="federal",
        fields=(
            _FIRST_NAME, _LAST_NAME, _SSN, _DOB, _PHONE, _EMAIL, _address(),
            _select("militaryBranch", "Military Branch", BRANCH_OPTIONS, key="veteranStatus.branch"),
            _select("dischargeType", "Discharge Type", DISCHARGE_OPTIONS, key="veteranStatus.dischargeType"),
            _select(
                "homelessStatus",
                "Current Housing Situation",
                ("Homeless", "At Risk of Homelessness", "In Shelter", "Couch Surfing", "Other"),
            ),
        ),
    ),
    FormDefinition(
        id="ssvf-intake",
        name="SSVF Intake Form",
        description="Supportive Services for Veteran Families program intake",
        category="federal",
        fields=(
            _FIRST_NAME, _LAST_NAME, _SSN, _DOB, _PHONE, _EMAIL,
            _text("householdSize", "Household Size"),
            _text("monthlyIncome", "Monthly Household Income"),
            _address(required=False),
            _select(
                "assistanceNeeded",
                "Type of Assistance Needed",
                ("Rental Assistance", "Utility Assistance", "Security Deposit", "Moving Costs", "Other"),
            ),
        ),
    ),
    FormDefinition(
        id="standard-rental",
        name="Standard Rental Application",
        description="Generic landlord/property management applications",
        category="general",
        fields=(
            _FIRST_NAME, _LAST_NAME, _SSN, _DOB, _PHONE, _EMAIL, _address(),
            _text("currentEmployer", "Current Employer", required=False),
            _text("monthlyIncome", "Monthly Income"),
            _text("previousLandlord", "Previous Landlord Name", required=False),
            _text("previousLandlordPhone", "Previous Landlord Phone", required=False, type="phone"),
        ),
    ),
    FormDefinition(
        id="income-verification",
        name="Income Verification Form",
        description="Proof of income documentation (VA Form 5655)",
        category="federal",
        fields=(
            _FIRST_NAME, _LAST_NAME,
            _text("middleName", "Middle Name", required=False, key="middleName"),
            _SSN,
            _text("vaFileNumber", "VA File Number", required=False),
            _address(), _PHONE, _DOB,
            _text("spouseName", "Name of Spouse", required=False),
            _text("dependentsAges", "Ages of Other Dependents", required=False),
            _text("reason", "Why are you completing this form?", required=False),
            _select(
                "employmentStatus",
                "Employment Status",
                ("Employed", "Self-Employed", "Unemployed", "Retired", "Disabled"),
            ),
            _text("monthlyIncome", "Monthly Income"),
            _select(
                "incomeSource",
                "Primary Income Source",
                ("Employment", "VA Disability", "Social Security", "Pension", "Other"),
            ),
            _text("rentOrMortgage", "Rent or Mortgage (Monthly)", required=False),
            _text("foodExpenses", "Food (Monthly)", required=False),
            _text("utilities", "Utilities and Heat (Monthly)", required=False),
            _text("otherLivingExpenses", "Other Living Expenses (Monthly)", required=False),
            _text("installmentPayments", "Installment/Contract Debts (Monthly)", required=False),
            _text("totalMonthlyExpenses", "Total Monthly Expenses", required=False),
        ),
    ),
    FormDefinition(
        id="va-benefits-verification",
        name="VA Benefits Verification",
        description="Request for VA benefit status confirmation (VA Form 26-8937)",
        category="federal",
        fields=(
            _FIRST_NAME, _LAST_NAME, _SSN, _DOB,
            _text("vaFileNumber", "VA File Number", required=False),
            _text("serviceStart", "Service Start Date", key="veteranStatus.serviceStart", type="date"),
            _text("serviceEnd", "Service End Date", key="veteranStatus.serviceEnd", type="date"),
            _select("militaryBranch", "Military Branch", BRANCH_OPTIONS, key="veteranStatus.branch"),
        ),
    ),
    FormDefinition(
        id="section-8",
        name="Section 8 Housing Choice Voucher",
        description="Federal housing assistance program application",
        category="federal",
        fields=(
            _FIRST_NAME, _LAST_NAME, _SSN, _DOB, _PHONE, _EMAIL, _address(),
            _text("householdSize", "Household Size"),
            _text("annualIncome", "Annual Household Income"),
            _select("veteranStatus", "Veteran Status", ("Veteran", "Veteran Spouse", "Not a Veteran")),
            _select("disabilityStatus", "Disability Status", ("Yes", "No"), required=False),
        ),
    ),
    FormDefinition(
        id="landlord-verification",
        name="Landlord Verification Form",
        description="Rental history verification for housing programs",
        category="general",
        fields=(
            _text("tenantFirstName", "Tenant First Name", key="firstName"),
            _text("tenantLastName", "Tenant Last Name", key="lastName"),
            _text("tenantSSN", "Tenant SSN (Last 4)"),
            _text("rentalAddress", "Rental Address", type="address"),
            _text("moveInDate", "Move-In Date", type="date"),
            _text("moveOutDate", "Move-Out Date", required=False, type="date"),
            _text("monthlyRent", "Monthly Rent Amount"),
            _text("landlordName", "Landlord Name"),
            _text("landlordPhone", "Landlord Phone", type="phone"),
        ),
    ),
)

_BY_ID: Dict[str, FormDefinition] = {form.id: form for form in FORM_TYPES}


def lookup(form_type: str) -> Optional[FormDefinition]:
    return _BY_ID.get(form_type)


def list_form_types() -> List[str]:
    return [form.id for form in FORM_TYPES]


def missing_required_fields(definition: FormDefinition, data: Mapping[str, object]) -> List[str]:
    """Return ids of required fields that are absent or blank in `data`."""
    missing = []
    for field in definition.fields:
        if not field.required:
            continue
        value = data.get(field.id)
        if value is None or not str(value).strip():
            missing.append(field.id)
    return missing
