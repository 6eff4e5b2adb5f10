from __future__ import annotations
from html import escape
from wabridge.domain.models import CredentialBundle

def _attr(value: str | None) -> str:
    return escape(value or "", quote=True)

def admin_ui_html(name: str | None, bundle: CredentialBundle, return_url: str | None, warning: str | None = None) -> str:
    """Setup form posted to admin_ui_2. ``warning`` is shown above the submit button."""
    warning_line = f"{escape(warning)}<br>" if warning else ""
    return f"""<html><body>
      <form method="post" action="./admin_ui_2">
        Name:
          <input type="text" name="name" value="{_attr(name or "Name")}"><br>
        JWT:
          <input type="text" name="jwt" value="{_attr(bundle.jwt or "Enter your JWT")}"><br>
        WhatsAppNumber:
          <input type="text" name="whatsappNumber" value="{_attr(bundle.whatsapp_number or "Enter your WhatsApp number")}"><br>
        <input type="hidden" name="return_url" value="{_attr(return_url)}">
        {warning_line}
        <input type="submit">
      </form>
    </body></html>"""

def finish_setup_html(name: str, bundle: CredentialBundle, return_url: str | None) -> str:
    """Auto-submitting form that hands name and metadata back to the platform."""
    return f"""<html><body>
      <form id="finish" method="post" action="{_attr(return_url)}">
        <input type="hidden" name="name" value="{_attr(name)}">
        <input type="hidden" name="metadata" value="{_attr(bundle.serialize())}">
      </form>
      <script type="text/javascript">
        document.forms['finish'].submit();
      </script>
    </body></html>"""
