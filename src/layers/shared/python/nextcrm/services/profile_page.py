"""Full HTML documents for the public profile boundary."""

from nextcrm.models.block_schemas import BlockKind, LeadFormProps
from nextcrm.services.profile_resolver import ProfileView
from nextcrm.services.renderer import (
    RenderContext,
    RenderNode,
    contains_kind,
    escape_html,
    lead_form_node,
    render,
    render_html,
    sanitize_url,
)

_BASE_CSS = """
    *, *::before, *::after { box-sizing: border-box; }
    body { margin: 0; font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif; color: #111827; background: #f9fafb; }
    .nc-header { text-align: center; padding: 40px 16px 24px; }
    .nc-avatar { width: 96px; height: 96px; border-radius: 50%; object-fit: cover; }
    .nc-section--contained > * { max-width: 72rem; margin-left: auto; margin-right: auto; }
    .nc-image img { max-width: 100%; height: auto; display: block; }
    .nc-button { display: inline-block; border-radius: 8px; text-decoration: none; font-weight: 600; }
    .nc-button--primary { background: #6366f1; color: #fff; }
    .nc-button--secondary { background: #e5e7eb; color: #111827; }
    .nc-button--outline { border: 2px solid #6366f1; color: #6366f1; }
    .nc-button--ghost { color: #6366f1; }
    .nc-button--sm { padding: 6px 12px; font-size: 14px; }
    .nc-button--md { padding: 10px 20px; font-size: 16px; }
    .nc-button--lg { padding: 14px 28px; font-size: 18px; }
    .nc-button--full { display: block; width: 100%; text-align: center; }
    .nc-social__link { display: inline-block; margin: 0 8px; text-transform: capitalize; }
    .nc-lead-form { max-width: 28rem; margin: 32px auto; display: flex; flex-direction: column; gap: 12px; padding: 0 16px; }
    .nc-lead-form input, .nc-lead-form textarea { padding: 10px 12px; border: 1px solid #d1d5db; border-radius: 8px; font: inherit; }
    .nc-hp { position: absolute; left: -9999px; }
    .nc-footer { text-align: center; padding: 24px; color: #9ca3af; font-size: 12px; }
    @media (max-width: 639px) { .nc-hidden-mobile { display: none; } }
    @media (min-width: 640px) and (max-width: 1023px) { .nc-hidden-tablet { display: none; } }
    @media (min-width: 1024px) { .nc-hidden-desktop { display: none; } }
"""

_LEAD_FORM_SCRIPT = """
<script>
document.querySelectorAll('form[data-lead-form]').forEach(function (form) {
  form.addEventListener('submit', function (event) {
    event.preventDefault();
    var data = {};
    new FormData(form).forEach(function (value, key) { data[key] = value; });
    fetch(form.dataset.endpoint, {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify(data)
    }).then(function (response) { return response.json(); }).then(function (body) {
      if (body.success) {
        form.innerHTML = '<p>' + form.dataset.successMessage.replace(/</g, '&lt;') + '</p>';
      } else {
        alert(body.error || 'Something went wrong');
      }
    });
  });
});
</script>
"""


def _document(title: str, body: str, description: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape_html(title)}</title>
    <meta name="description" content="{escape_html(description)}">
    <style>{_BASE_CSS}</style>
</head>
<body>
{body}
</body>
</html>"""


def _header(view: ProfileView) -> RenderNode:
    header = RenderNode(component="profile_header", tag="header", attrs={"class": "nc-header"})
    if view.owner.image:
        header.children.append(
            RenderNode(
                component="avatar",
                tag="img",
                attrs={"class": "nc-avatar", "src": sanitize_url(view.owner.image), "alt": view.owner.name},
            )
        )
    header.children.append(RenderNode(component="owner_name", tag="h1", text=view.owner.name))
    if view.bio:
        header.children.append(RenderNode(component="bio", tag="p", text=view.bio))
    if view.socials:
        nav = RenderNode(component="social_links", tag="nav", attrs={"class": "nc-social"})
        for link in view.socials:
            nav.children.append(
                RenderNode(
                    component="social_link",
                    tag="a",
                    attrs={
                        "href": sanitize_url(link.url),
                        "class": f"nc-social__link nc-social__link--{link.network}",
                        "rel": "noopener",
                        "target": "_blank",
                    },
                    text=link.network,
                )
            )
        header.children.append(nav)
    return header


def render_profile_page(view: ProfileView, api_url: str = "") -> str:
    """Render a resolved profile to a complete HTML document.

    A default lead form is appended unless the content embeds one.
    """
    api_url = api_url if api_url.startswith(("https://", "http://")) else ""
    context = RenderContext(profile_id=view.profile_id, lead_endpoint=f"{api_url.rstrip('/')}/public/leads")

    main = RenderNode(component="main", tag="main")
    main.children.append(render(view.content, context))
    if not contains_kind(view.content, BlockKind.LEAD_FORM):
        main.children.append(lead_form_node(LeadFormProps(), context))

    body = "\n".join(
        [
            render_html(_header(view)),
            render_html(main),
            '<footer class="nc-footer">Powered by NextCRM</footer>',
            _LEAD_FORM_SCRIPT,
        ]
    )
    return _document(view.owner.name, body, description=view.bio or view.content.metadata.name)


def render_not_found_page() -> str:
    """Terminal page for slugs that resolve to nothing."""
    body = """<main class="nc-header">
    <h1>Profile not found</h1>
    <p>The page you are looking for does not exist or is no longer available.</p>
</main>"""
    return _document("Profile not found", body)


def render_unavailable_page() -> str:
    """Generic page for storage failures; carries no internal detail."""
    body = """<main class="nc-header">
    <h1>Temporarily unavailable</h1>
    <p>Please try again in a few moments.</p>
</main>"""
    return _document("Temporarily unavailable", body)
