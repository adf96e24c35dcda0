# Overview: Subject lines and HTML bodies for every notification the portal sends.

from __future__ import annotations

from markupsafe import escape

from ..time_utils import parse_iso_datetime

PURCHASE_REQUEST = "purchaseRequest"
PURCHASE_REQUEST_CONFIRMATION = "purchaseRequestConfirmation"
REMINDER = "reminder"
RESPONSE_NOTIFICATION = "responseNotification"
NEW_REGISTRATION_ADMIN = "newRegistrationAdmin"
REGISTRATION_RECEIVED_USER = "registrationReceivedUser"
ROLE_UPDATED = "roleUpdated"

TEMPLATES = {
    PURCHASE_REQUEST,
    PURCHASE_REQUEST_CONFIRMATION,
    REMINDER,
    RESPONSE_NOTIFICATION,
    NEW_REGISTRATION_ADMIN,
    REGISTRATION_RECEIVED_USER,
    ROLE_UPDATED,
}

PRIMARY = "#dc2626"
TEXT_DARK = "#1e293b"
TEXT_LIGHT = "#64748b"


def _date(value) -> str:
    if not value:
        return ""
    try:
        dt = parse_iso_datetime(str(value))
    except ValueError:
        return str(escape(value))
    return dt.strftime("%d/%m/%Y") if dt else ""


def _datetime(value) -> str:
    if not value:
        return ""
    try:
        dt = parse_iso_datetime(str(value))
    except ValueError:
        return str(escape(value))
    return dt.strftime("%d %B %Y %H:%M UTC") if dt else ""


def subject_for(template: str, data: dict) -> str:
    request = data.get("request") or {}
    if template == PURCHASE_REQUEST:
        return f"New Staff Purchase Request - {request.get('employeeName')} ({request.get('storeName')})"
    if template == REMINDER:
        return f"REMINDER: Action Required - Staff Purchase Request - {request.get('employeeName')}"
    if template == RESPONSE_NOTIFICATION:
        action = data.get("action")
        prefix = "CONFIRMED" if action == "confirm" else ("REJECTED" if action == "reject" else "UPDATE")
        return f"{prefix}: Purchase Request - {request.get('employeeName')} ({request.get('storeName')})"
    if template == REGISTRATION_RECEIVED_USER:
        return "Registration Received - Huntsman Optics"
    if template == PURCHASE_REQUEST_CONFIRMATION:
        return "Purchase Request Received - Huntsman Optics"
    if template == NEW_REGISTRATION_ADMIN:
        return "ALERT: New User Registration Pending Approval"
    if template == ROLE_UPDATED:
        return "Access Policy Updated - Huntsman Optics"
    return "Staff Purchase Request Notification"


def _row(label: str, value, *, accent: bool = False) -> str:
    color = PRIMARY if accent else TEXT_DARK
    return (
        f'<tr><td style="padding: 10px 0; color: {TEXT_LIGHT}; font-size: 14px;">{escape(label)}</td>'
        f'<td style="padding: 10px 0; font-weight: 700; text-align: right; color: {color};">{value}</td></tr>'
    )


def _request_table(request: dict, *, with_contacts: bool) -> str:
    rows = [
        _row("Store Name", escape(request.get("storeName", ""))),
        _row("Employee", escape(request.get("employeeName", ""))),
    ]
    if with_contacts and request.get("publicEmail"):
        rows.append(_row("Contact Email", escape(request["publicEmail"])))
    if with_contacts and request.get("email"):
        rows.append(_row("Sight App Email", escape(request["email"])))
    rows.append(_row("Product Model", escape(request.get("productModel", "")), accent=True))
    rows.append(_row("Discount", escape(request.get("discount", ""))))
    for label, key in (("Serial Number", "serialNumber"), ("FOB", "fob"), ("Rebate", "rebate")):
        if request.get(key):
            rows.append(_row(label, escape(request[key])))
    rows.append(_row("Order Date", _date(request.get("orderDate"))))
    rows.append(_row("Invoice Date", _date(request.get("invoiceDate"))))
    return f'<table style="width: 100%; border-collapse: collapse;">{"".join(rows)}</table>'


def _wrap(inner: str) -> str:
    return (
        "<html><body style=\"font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; "
        f"line-height: 1.6; color: {TEXT_DARK}; background-color: #f1f5f9; padding: 40px 20px;\">"
        '<div style="max-width: 600px; margin: 0 auto; background: #ffffff; '
        f'border-top: 6px solid {PRIMARY}; border-radius: 16px; padding: 32px 40px;">'
        '<h2 style="margin: 0 0 16px; text-align: center;">Staff Purchase Request</h2>'
        f"{inner}"
        '<p style="margin-top: 32px; font-size: 11px; color: #94a3b8; text-align: center;">'
        "Huntsman Optics Secure Portal</p>"
        "</div></body></html>"
    )


def _button(href: str, label: str, background: str = PRIMARY) -> str:
    return (
        f'<a href="{escape(href)}" style="background: {background}; color: #ffffff; padding: 14px 28px; '
        f'text-decoration: none; border-radius: 12px; font-weight: 800; display: inline-block;">{escape(label)}</a>'
    )


def response_links(base_url: str, token: str) -> dict:
    return {
        "confirm": f"{base_url}/respond/{token}?action=confirm",
        "reject": f"{base_url}/respond/{token}?action=reject",
    }


def html_for(template: str, data: dict, *, base_url: str) -> str:
    request = data.get("request") or {}

    if template in (PURCHASE_REQUEST, REMINDER):
        links = response_links(base_url, data.get("token", ""))
        banner = ""
        if template == REMINDER:
            banner = (
                '<div style="background: #fff1f2; color: #be123c; padding: 12px; text-align: center; '
                'font-weight: 800;">Action Required: Reminder Notification</div>'
            )
        terms = (
            '<div style="background: #fef2f2; padding: 20px; margin: 20px 0; color: #b91c1c; font-size: 13px;">'
            "<strong>CONFIRMATION &amp; ACCEPTANCE</strong><ul>"
            "<li>I agree to register for the Sight App using the same email address provided above.</li>"
            "<li>I acknowledge that the device must remain in my possession for a minimum period of 14 months.</li>"
            "<li>I request confirmation of receipt within 30 days.</li>"
            "</ul></div>"
        )
        actions = (
            '<div style="text-align: center;">'
            "<p><strong>Please confirm your details to proceed:</strong></p>"
            f'{_button(links["confirm"], "I Confirm & Agree")}'
            f'<p><a href="{escape(links["reject"])}" style="color: {TEXT_LIGHT};">Wrong details? Reject Request</a></p>'
            "</div>"
        )
        return _wrap(banner + _request_table(request, with_contacts=True) + terms + actions)

    if template == RESPONSE_NOTIFICATION:
        status = request.get("status", "")
        color = "#16a34a" if status == "Confirmed" else ("#dc2626" if status == "Rejected" else "#ca8a04")
        action = data.get("action")
        note = data.get("note")
        if note:
            detail = f'<p><strong>Staff Comments</strong></p><blockquote>"{escape(note)}"</blockquote>'
        elif action == "confirm":
            detail = "<p>The staff member has confirmed the details and accepted the Sight App terms.</p>"
        elif action == "reject":
            detail = "<p>The staff member has rejected the request.</p>"
        else:
            detail = "<p>The staff member has updated the request status.</p>"
        head = (
            f'<p style="text-align: center; color: {color}; font-weight: 800; text-transform: uppercase;">'
            f"Status: {escape(status)}</p>"
            f"<p>Staff member <strong>{escape(request.get('employeeName', ''))}</strong> "
            "has responded to the purchase request.</p>"
            f"<p><strong>Time:</strong> {_datetime(request.get('responseTimestamp') or request.get('updatedAt'))}</p>"
        )
        footer = f'<div style="text-align: center;">{_button(base_url + "/dashboard", "Open Dashboard", TEXT_DARK)}</div>'
        return _wrap(head + _request_table(request, with_contacts=False) + detail + footer)

    if template == PURCHASE_REQUEST_CONFIRMATION:
        summary = (
            '<table style="width: 100%;">'
            + _row("Store", escape(request.get("storeName", "")))
            + _row("Product", escape(request.get("productModel", "")), accent=True)
            + _row("Date", _date(request.get("createdAt")))
            + "</table>"
        )
        return _wrap(
            '<p style="text-align: center; color: #ca8a04; font-weight: 800;">Status: Under Review</p>'
            f"<p>Hello <strong>{escape(request.get('employeeName', ''))}</strong>,</p>"
            "<p>We have received your staff purchase request. Our administration team is currently "
            "reviewing the details. You will be notified once the request has been processed.</p>"
            + summary
        )

    if template == REGISTRATION_RECEIVED_USER:
        user = data.get("user") or {}
        return _wrap(
            f"<p>Hello <strong>{escape(user.get('name') or user.get('email') or '')}</strong>,</p>"
            "<p>Your account has been successfully created and is now <strong>Pending Approval</strong> "
            "by our administration team. You will receive another email once your access has been granted.</p>"
        )

    if template == NEW_REGISTRATION_ADMIN:
        user = data.get("user") or {}
        table = (
            '<table style="width: 100%;">'
            + _row("Name", escape(user.get("name", "")))
            + _row("Email", escape(user.get("email", "")))
            + _row("Time", _datetime(data.get("registeredAt")))
            + "</table>"
        )
        return _wrap(
            "<h3>Action Required: Approve User</h3>"
            "<p>A new staff member has registered for the portal and is waiting for role assignment.</p>"
            + table
            + f'<div style="text-align: center;">{_button(base_url + "/dashboard/staff", "Manage Access Policies")}</div>'
        )

    if template == ROLE_UPDATED:
        role = str(data.get("role") or "")
        role_label = role[:1].upper() + role[1:]
        sender = escape(data.get("sender", ""))
        if data.get("oldRole") == "pending":
            badge = "Access Granted"
            heading = "Welcome to the Portal"
            body = (
                f"Your registration has been approved by <strong>{sender}</strong>. You now have "
                f"<strong>{escape(role_label)}</strong> access to the Huntsman Optics Staff Portal."
            )
        else:
            badge = "Role Updated"
            heading = "Your Role has Changed"
            body = (
                f"Your access policy has been updated by <strong>{sender}</strong>. "
                f"Your new role is <strong>{escape(role_label)}</strong>."
            )
        return _wrap(
            '<p style="text-align: center; color: #16a34a; font-weight: 800; text-transform: uppercase;">'
            f"{badge}</p>"
            f"<h3>{heading}</h3>"
            f"<p>Hello <strong>{escape(data.get('userName') or 'Team Member')}</strong>,</p>"
            f"<p>{body}</p>"
            f'<div style="text-align: center;">{_button(base_url + "/dashboard", "Go to Dashboard")}</div>'
        )

    return ""
