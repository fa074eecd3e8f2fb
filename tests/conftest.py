import datetime as dt

import fitz
import pytest

from form_prefill.service import FormExportService
from form_prefill.storage import FormStore, ProfileStore

SECTION_8_FIELDS = [
    "Name",
    "Tenant",
    "Address street_ city_ state_ zip code",
    "HouseholdMembers",
    "Text1",
    "Textfield-1",
    "Textfield-2",
    "Textfield-3",
    "Print or Type Name of Owner",
    "Print or Type Name of PHA",
    "Signature",
    "Date mmddyyyy",
]

FIXED_DAY = dt.date(2024, 3, 5)


def build_template(text_fields=(), checkbox_fields=(), pages=1):
    """Create a fillable PDF with the given widgets on its first page."""
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page()
    page = doc[0]
    y = 60
    for name, field_type in [(n, fitz.PDF_WIDGET_TYPE_TEXT) for n in text_fields] + [
        (n, fitz.PDF_WIDGET_TYPE_CHECKBOX) for n in checkbox_fields
    ]:
        widget = fitz.Widget()
        widget.field_type = field_type
        widget.field_name = name
        widget.rect = fitz.Rect(72, y, 400, y + 18) if field_type == fitz.PDF_WIDGET_TYPE_TEXT else fitz.Rect(72, y, 90, y + 18)
        if field_type == fitz.PDF_WIDGET_TYPE_TEXT:
            widget.text_fontsize = 10
        page.add_widget(widget)
        y += 24
    data = doc.tobytes()
    doc.close()
    return data


def _refs(xrefs):
    return " ".join(f"{xref} 0 R" for xref in xrefs)


def build_hierarchical_template(root_name, text_leaves, radio_leaf=None, radio_states=()):
    """
    Create a template whose fields hang under `root_name` > `#subform[0]`.

    Text leaves are merged field/widget objects; the optional radio group is a
    parent field with one widget kid per on-state.
    """
    doc = fitz.open()
    page = doc.new_page()

    font = doc.get_new_xref()
    doc.update_object(font, "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>")
    on_ap = doc.get_new_xref()
    doc.update_object(on_ap, "<< /Type /XObject /Subtype /Form /BBox [0 0 18 18] >>")
    doc.update_stream(on_ap, b"0 g 4 4 10 10 re f")
    off_ap = doc.get_new_xref()
    doc.update_object(off_ap, "<< /Type /XObject /Subtype /Form /BBox [0 0 18 18] >>")
    doc.update_stream(off_ap, b"% off")

    root = doc.get_new_xref()
    subform = doc.get_new_xref()
    children, annots = [], []

    for i, leaf in enumerate(text_leaves):
        xref = doc.get_new_xref()
        top = 780 - i * 30
        doc.update_object(
            xref,
            f"<< /Type /Annot /Subtype /Widget /F 4 /FT /Tx /T ({leaf}) /Parent {subform} 0 R "
            f"/P {page.xref} 0 R /Rect [72 {top - 18} 400 {top}] /DA (/Helv 10 Tf 0 g) >>",
        )
        children.append(xref)
        annots.append(xref)

    if radio_leaf:
        group = doc.get_new_xref()
        kids = []
        for i, state in enumerate(radio_states):
            xref = doc.get_new_xref()
            x = 72 + i * 40
            doc.update_object(
                xref,
                f"<< /Type /Annot /Subtype /Widget /F 4 /Parent {group} 0 R /P {page.xref} 0 R "
                f"/Rect [{x} 500 {x + 18} 518] /AS /Off "
                f"/AP << /N << /{state} {on_ap} 0 R /Off {off_ap} 0 R >> >> >>",
            )
            kids.append(xref)
            annots.append(xref)
        # Ff 49152: radio + no toggle to off
        doc.update_object(
            group,
            f"<< /FT /Btn /Ff 49152 /T ({radio_leaf}) /V /Off /Parent {subform} 0 R /Kids [{_refs(kids)}] >>",
        )
        children.append(group)

    doc.update_object(subform, f"<< /T (#subform[0]) /Parent {root} 0 R /Kids [{_refs(children)}] >>")
    doc.update_object(root, f"<< /T ({root_name}) /Kids [{subform} 0 R] >>")
    doc.xref_set_key(page.xref, "Annots", f"[{_refs(annots)}]")
    doc.xref_set_key(
        doc.pdf_catalog(),
        "AcroForm",
        f"<< /Fields [{root} 0 R] /DA (/Helv 0 Tf 0 g) /DR << /Font << /Helv {font} 0 R >> >> >>",
    )
    data = doc.tobytes()
    doc.close()
    return data


class DictTemplateSource:
    """Template source backed by a dict; records every read."""

    def __init__(self, templates=None):
        self.templates = dict(templates or {})
        self.reads = []

    def read_template(self, location):
        self.reads.append(location)
        return self.templates[location]


@pytest.fixture
def make_template():
    return build_template


@pytest.fixture
def section8_template():
    return build_template(SECTION_8_FIELDS, pages=2)


@pytest.fixture
def va_benefits_template():
    return build_hierarchical_template(
        "form1[0]",
        ["TO[0]", "NAMEOFVETERAN[0]", "DATESIGNED[0]"],
        radio_leaf="RadioButtonList[0]",
        radio_states=("Honorable", "General"),
    )


@pytest.fixture
def income_template():
    return build_hierarchical_template("vaco5655[0]", ["Field1[0]", "Field3[0]", "Field4[0]", "Field11[0]"])


@pytest.fixture
def profile():
    return {
        "firstName": "Jane",
        "middleName": "Q",
        "lastName": "Doe",
        "phone": "555-0100",
        "dateOfBirth": "1980-02-01",
        "ssn": "123-45-6789",
        "email": "stale@example.com",
        "address": {"street": "1 Main", "city": "Springfield", "state": "CA", "zipCode": "90001"},
        "veteranStatus": {
            "branch": "Army",
            "serviceStart": "2000-01-01",
            "serviceEnd": "2004-01-01",
            "dischargeType": "Honorable",
        },
    }


@pytest.fixture
def form_store(tmp_path):
    return FormStore(tmp_path / "user_data")


@pytest.fixture
def profile_store(tmp_path):
    return ProfileStore(tmp_path / "user_data")


@pytest.fixture
def template_source(section8_template):
    return DictTemplateSource({"hud-52641-request-for-tenancy-approval.pdf": section8_template})


@pytest.fixture
def service(form_store, template_source, profile_store):
    return FormExportService(form_store, template_source, profile_store=profile_store, today=lambda: FIXED_DAY)
