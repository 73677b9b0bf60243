"""Server-rendered single page for the knowledge base.

The page draws a ViewResponse; buttons and forms call the /v1/ui JSON
actions and reload.
"""

import html
import json

from knowledge_hub.schemas.items import Category
from knowledge_hub.schemas.view import QACard, ReadingRow, TabStatus, ViewResponse

TAB_LABELS: dict[Category, str] = {
    Category.STRATEGY: "Strategy",
    Category.PRODUCT: "Product",
    Category.TECHNOLOGY: "Technology",
}

_SCRIPT = """
async function call(method, url, body) {
  const resp = await fetch(url, {
    method,
    headers: {'Content-Type': 'application/json'},
    body: body ? JSON.stringify(body) : undefined,
  });
  const data = await resp.json();
  sessionStorage.setItem('notices', JSON.stringify((data.view && data.view.notices) || []));
  location.reload();
}
function addQA(form) {
  call('POST', '/v1/ui/qa', {title: form.title.value, content: form.content.value});
  return false;
}
function addReading(form, kind) {
  call('POST', '/v1/ui/reading', {text: form.text.value, kind});
  return false;
}
function editQA(id, title, content) {
  const newTitle = prompt('Question', title);
  if (newTitle === null) return;
  const newContent = prompt('Answer', content);
  if (newContent === null) return;
  call('PUT', '/v1/ui/qa/' + id, {title: newTitle, content: newContent});
}
function editReading(id, text) {
  const newText = prompt('Reading entry', text);
  if (newText === null) return;
  call('PUT', '/v1/ui/reading/' + id, {text: newText});
}
function moveQA(movedId, targetId) {
  call('POST', '/v1/ui/qa/reorder', {movedId, targetId});
}
function showNotices() {
  const pending = JSON.parse(sessionStorage.getItem('notices') || '[]');
  sessionStorage.removeItem('notices');
  const box = document.getElementById('notices');
  for (const n of pending) {
    const div = document.createElement('div');
    div.className = 'notice ' + n.variant;
    div.textContent = n.title + ': ' + n.description;
    box.appendChild(div);
  }
}
document.addEventListener('DOMContentLoaded', showNotices);
"""


def _esc(value: str) -> str:
    return html.escape(value, quote=True)


def _tab_html(tab: TabStatus, view: ViewResponse) -> str:
    active = tab.category == view.active_tab and not view.search_query
    spinner = " <span class='spinner'>&#8635;</span>" if tab.loading else ""
    css = "tab active" if active else "tab"
    return (
        f"<a class='{css}' href='/?tab={tab.category.value}'>"
        f"{TAB_LABELS[tab.category]}{spinner}</a>"
    )


def _js(value: str) -> str:
    """A JS string literal safe inside a double-quoted HTML attribute."""
    return _esc(json.dumps(value))


def _move_button(label: str, item_js: str, target_id: str | None) -> str:
    if target_id is None:
        return ""
    return f"<button onclick=\"moveQA({item_js}, {_js(target_id)})\">{label}</button>"


def _qa_html(
    card: QACard,
    searching: bool,
    prev_id: str | None = None,
    next_id: str | None = None,
) -> str:
    item_js = _js(card.entry.id)
    source = (
        f"<span class='source'>{TAB_LABELS[card.source_category]}</span>" if searching else ""
    )
    toggle = "Collapse" if card.expanded else "Expand"
    # move buttons on the active tab only
    moves = "" if searching else (
        _move_button("Up", item_js, prev_id) + _move_button("Down", item_js, next_id)
    )
    return (
        f"<div class='card'>"
        f"<div class='card-head'><h3>{_esc(card.entry.title)}</h3>{source}</div>"
        f"<div class='card-body'>{card.html}</div>"
        f"<div class='card-actions'>"
        f"<button onclick=\"call('POST', '/v1/ui/expand/' + {item_js})\">{toggle}</button>"
        f"<button onclick=\"editQA({item_js}, {_js(card.entry.title)}, {_js(card.entry.content)})\">Edit</button>"
        f"{moves}"
        f"<button onclick=\"call('DELETE', '/v1/ui/qa/' + {item_js})\">Delete</button>"
        f"</div></div>"
    )


def _reading_html(row: ReadingRow) -> str:
    item_js = _js(row.entry.id)
    title = f"<strong>{_esc(row.entry.title)}</strong><br />" if row.entry.title else ""
    return (
        f"<li>{title}{row.html} "
        f"<button class='link' onclick=\"editReading({item_js}, {_js(row.entry.text)})\">Edit</button>"
        f"<button class='link' onclick=\"call('DELETE', '/v1/ui/reading/' + {item_js})\">&#x2715;</button>"
        f"</li>"
    )


def render_page(view: ViewResponse) -> str:
    searching = bool(view.search_query.strip())
    tabs_html = "".join(_tab_html(tab, view) for tab in view.tabs)
    ids = [card.entry.id for card in view.qa]
    qa_html = "".join(
        _qa_html(
            card,
            searching,
            prev_id=ids[i - 1] if i > 0 else None,
            next_id=ids[i + 1] if i + 1 < len(ids) else None,
        )
        for i, card in enumerate(view.qa)
    )
    refresh = (
        f"<button class='refresh' onclick=\"call('POST', '/v1/ui/refresh?tab={view.active_tab.value}')\">"
        f"Refresh</button>"
    )
    required_html = "".join(_reading_html(row) for row in view.required)
    optional_html = "".join(_reading_html(row) for row in view.optional)
    empty_qa = "No matching entries" if searching else "No QA entries yet"
    empty_reading = "No matching entries" if searching else "Nothing here yet"
    mode = "" if view.remote_available else "<span class='mode'>local only</span>"
    loading = "<div class='loading'>Loading knowledge base...</div>" if view.loading else ""
    notices_html = "".join(
        f"<div class='notice {n.variant}'>{_esc(n.title)}: {_esc(n.description)}</div>"
        for n in view.notices
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Knowledge Hub</title>
  <style>
    body {{ font-family: system-ui, sans-serif; background: #f7f7f5; margin: 0; }}
    .page {{ max-width: 1100px; margin: 0 auto; padding: 32px 24px; }}
    header {{ display: flex; gap: 8px; align-items: center; margin-bottom: 24px; }}
    .tab {{ padding: 8px 16px; border-radius: 8px 8px 0 0; color: #666; text-decoration: none; }}
    .tab.active {{ background: #fff; color: #1a1a1a; border-bottom: 2px solid #3b82f6; }}
    .mode {{ font-size: 11px; color: #b45309; margin-left: 8px; }}
    form.search {{ margin-left: auto; }}
    .columns {{ display: grid; grid-template-columns: 2fr 1fr; gap: 24px; }}
    .card {{ background: #fff; border: 1px solid #ddddd8; border-radius: 8px;
             padding: 16px 20px; margin-bottom: 12px; }}
    .card-head {{ display: flex; justify-content: space-between; }}
    .card h3 {{ margin: 0 0 8px; font-size: 16px; }}
    .source {{ font-size: 11px; color: #3b82f6; }}
    .card-actions button, button.link {{ font-size: 12px; background: none; border: none;
                                          color: #777; cursor: pointer; }}
    .empty {{ color: #bbb; }}
    .notice {{ padding: 8px 12px; border-radius: 6px; margin-bottom: 8px; background: #ecfdf5; }}
    .notice.destructive {{ background: #fef2f2; color: #b91c1c; }}
    ul {{ padding-left: 18px; }}
  </style>
  <script>{_SCRIPT}</script>
</head>
<body>
  <div class="page">
    <header>
      {tabs_html}{mode}{refresh}
      <form class="search" method="get" action="/">
        <input type="hidden" name="tab" value="{view.active_tab.value}">
        <input name="q" value="{_esc(view.search_query)}" placeholder="Search the knowledge base...">
      </form>
    </header>
    <div id="notices">{notices_html}</div>
    {loading}
    <div class="columns">
      <section>
        <form onsubmit="return addQA(this)">
          <input name="title" placeholder="Question">
          <textarea name="content" rows="3" placeholder="Answer (**bold**, *italic*, [link](url), ![image](src))"></textarea>
          <button type="submit">Publish</button>
        </form>
        {qa_html or f"<p class='empty'>{empty_qa}</p>"}
      </section>
      <aside>
        <h2>Required reading</h2>
        <form onsubmit="return addReading(this, 'required')"><input name="text" placeholder="Text or link"></form>
        <ul>{required_html or f"<li class='empty'>{empty_reading}</li>"}</ul>
        <h2>Optional reading</h2>
        <form onsubmit="return addReading(this, 'optional')"><input name="text" placeholder="Text or link"></form>
        <ul>{optional_html or f"<li class='empty'>{empty_reading}</li>"}</ul>
      </aside>
    </div>
  </div>
</body>
</html>"""
