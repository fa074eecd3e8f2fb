from dotenv import load_dotenv

load_dotenv(".env.local"); load_dotenv()  # also loads .env if present

# app.py
import os

import requests
import streamlit as st

st.set_page_config(page_title="Housing Form Assistant", layout="wide")

BACKEND = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")


def api_get(path: str, **params):
    r = requests.get(f"{BACKEND}{path}", params=params, timeout=30)
    if not r.ok:
        st.error(f"Backend error {r.status_code}: {r.text}")
        st.stop()
    return r.json()


def mask_ssn(value: str) -> str:
    digits = "".join(ch for ch in value or "" if ch.isdigit())
    return f"***-**-{digits[-4:]}" if len(digits) >= 4 else (value or "Not provided")


# ------------- Sidebar: who is filling -------------
st.sidebar.title("Applicant")
user_id = st.sidebar.text_input("User ID", value=st.session_state.get("user_id", "demo-user"))
email = st.sidebar.text_input("Account email", value=st.session_state.get("email", ""))
st.session_state["user_id"] = user_id
st.session_state["email"] = email

with st.sidebar.expander("Profile", expanded=False):
    current = (api_get("/profile", user_id=user_id).get("profile") or {}) if user_id else {}
    address = current.get("address") or {}
    veteran = current.get("veteranStatus") or {}
    profile = {
        "firstName": st.text_input("First name", value=current.get("firstName", "")),
        "middleName": st.text_input("Middle name", value=current.get("middleName", "")),
        "lastName": st.text_input("Last name", value=current.get("lastName", "")),
        "phone": st.text_input("Phone", value=current.get("phone", "")),
        "dateOfBirth": st.text_input("Date of birth", value=current.get("dateOfBirth", "")),
        "ssn": st.text_input("SSN", value=current.get("ssn", ""), type="password"),
        "address": {
            "street": st.text_input("Street", value=address.get("street", "")),
            "city": st.text_input("City", value=address.get("city", "")),
            "state": st.text_input("State", value=address.get("state", "")),
            "zipCode": st.text_input("ZIP code", value=address.get("zipCode", "")),
        },
        "veteranStatus": {
            "branch": st.text_input("Branch", value=veteran.get("branch", "")),
            "serviceStart": st.text_input("Service start", value=veteran.get("serviceStart", "")),
            "serviceEnd": st.text_input("Service end", value=veteran.get("serviceEnd", "")),
            "dischargeType": st.text_input("Discharge type", value=veteran.get("dischargeType", "")),
        },
    }
    if st.button("Save profile") and user_id:
        r = requests.post(f"{BACKEND}/profile", json={"user_id": user_id, "profile": profile}, timeout=30)
        if r.ok:
            st.success("Profile saved")
        else:
            st.error(r.text)


# ------------- Main: pick a form -------------
forms = api_get("/forms/types")["forms"]
pdf = api_get("/pdf/templates")
supported = set(pdf.get("supported", []))

names = [f"{f['name']}" + ("" if f["id"] in supported else " (PDF coming soon)") for f in forms]
idx = st.selectbox("Form", options=list(range(len(forms))), format_func=lambda i: names[i])
form = forms[idx]
form_type = form["id"]

st.title(form["name"])
st.caption(form["description"])

# Pre-populate from the profile once per form type
state_key = f"form_data::{form_type}"
if state_key not in st.session_state or st.button("Re-apply profile auto-fill"):
    st.session_state[state_key] = api_get(f"/forms/{form_type}/autofill", user_id=user_id, email=email)["form_data"]

form_data = dict(st.session_state[state_key])
for field in form["fields"]:
    label = field["label"] + (" *" if field.get("required") else "")
    if field.get("autoFillKey"):
        label += " (auto-filled)"
    value = form_data.get(field["id"], "")
    if field["type"] == "select":
        options = [""] + field.get("options", [])
        form_data[field["id"]] = st.selectbox(
            label, options, index=options.index(value) if value in options else 0, key=f"{form_type}.{field['id']}"
        )
    elif field["type"] in ("textarea", "address"):
        form_data[field["id"]] = st.text_area(label, value=value, key=f"{form_type}.{field['id']}")
    else:
        form_data[field["id"]] = st.text_input(
            label, value=value, placeholder=field.get("placeholder") or "", key=f"{form_type}.{field['id']}"
        )
st.session_state[state_key] = form_data

c1, c2 = st.columns(2)
for col, status in ((c1, "draft"), (c2, "completed")):
    if col.button("Save draft" if status == "draft" else "Complete form"):
        r = requests.post(
            f"{BACKEND}/forms",
            json={"user_id": user_id, "form_type": form_type, "form_data": form_data, "status": status},
            timeout=30,
        )
        if r.ok:
            body = r.json()
            st.session_state[f"last_form_id::{form_type}"] = body["form_id"]
            st.success(body["message"])
            if body.get("missing_required"):
                st.warning("Missing required fields: " + ", ".join(body["missing_required"]))
        else:
            st.error(r.text)


# ------------- Review + export -------------
st.subheader("Review")
for field in form["fields"]:
    value = form_data.get(field["id"], "")
    shown = mask_ssn(value) if field["type"] == "ssn" else (value or "Not provided")
    st.write(f"**{field['label']}:** {shown}")

if form_type not in supported:
    st.info("PDF export for this form is coming soon.")
elif st.button("Export PDF"):
    with st.spinner("Generating PDF..."):
        r = requests.post(
            f"{BACKEND}/forms/export",
            json={"user_id": user_id, "form_type": form_type, "form_id": st.session_state.get(f"last_form_id::{form_type}")},
            timeout=120,
        )
    if r.headers.get("content-type", "").startswith("application/pdf"):
        st.download_button(
            "Download filled PDF", r.content, file_name=f"{form_type}-application.pdf", mime="application/pdf"
        )
    else:
        st.error(f"Backend error {r.status_code}: {r.text}")

st.caption(f"Backend: {BACKEND}")
