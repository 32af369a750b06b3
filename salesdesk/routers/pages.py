from __future__ import annotations

import html
import json
from typing import Any, Dict, List

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from salesdesk.core.config import API_PREFIX

router = APIRouter(prefix="/ui", tags=["ui"])

CUSTOMER_COLUMNS: List[Dict[str, Any]] = [
    {"field": "id", "header": "ID", "editable": False},
    {"field": "firstname", "header": "First name", "editable": True},
    {"field": "lastname", "header": "Last name", "editable": True},
    {"field": "address", "header": "Address", "editable": True},
    {"field": "zip", "header": "Zip", "editable": True},
    {"field": "city", "header": "City", "editable": True},
    {"field": "email", "header": "Email", "editable": True, "type": "email"},
    {"field": "phone", "header": "Phone", "editable": True},
]

PRODUCT_COLUMNS: List[Dict[str, Any]] = [
    {"field": "code", "header": "Code", "editable": False},
    {"field": "description", "header": "Description", "editable": True},
    {"field": "unit_price", "header": "Price", "editable": True, "type": "number"},
]

PRODUCT_FORM_FIELDS: List[Dict[str, Any]] = [
    {"name": "code", "label": "Product Code", "required": True},
    {"name": "description", "label": "Description", "required": True},
    {"name": "unit_price", "label": "Price", "required": True, "type": "number"},
]

CUSTOMER_FORM_FIELDS: List[Dict[str, Any]] = [
    {"name": column["field"], "label": column["header"], "required": True, "type": column.get("type", "text")}
    for column in CUSTOMER_COLUMNS
    if column["editable"]
]

_STYLE = """
    body { margin: 0; font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial;
           background: #0b0f14; color: #e7eef6; padding: 24px; }
    h1 { font-size: 20px; margin: 0 0 16px; }
    table { width: 100%; border-collapse: collapse; font-size: 13px; }
    th, td { text-align: left; padding: 8px; border-bottom: 1px solid rgba(255,255,255,0.08); }
    input { background: rgba(255,255,255,0.04); border: 1px solid rgba(255,255,255,0.15);
            color: #e7eef6; padding: 6px 8px; border-radius: 8px; width: 100%; box-sizing: border-box; }
    button { padding: 6px 10px; border-radius: 8px; border: none; background: #ffb86b;
             color: #1a1f2b; font-weight: 600; cursor: pointer; margin-right: 4px; }
    button.secondary { background: rgba(255,255,255,0.1); color: #e7eef6; }
    .toolbar { margin-bottom: 12px; }
    .snackbar { position: fixed; bottom: 20px; left: 20px; padding: 10px 14px; border-radius: 10px; }
    .snackbar.success { background: #1f6f43; }
    .snackbar.error { background: #8a1f2d; }
    .modal { position: fixed; inset: 0; background: rgba(0,0,0,.6); display: none;
             align-items: center; justify-content: center; }
    .modal.open { display: flex; }
    .card { background: #141b24; padding: 20px; border-radius: 14px; width: 100%; max-width: 420px; }
    label { display: block; font-size: 12px; color: #91a4b7; margin: 10px 0 4px; }
    .field-error { color: #ff9aa2; font-size: 12px; }
    .loading { height: 3px; background: linear-gradient(90deg, #ffb86b 40%, transparent 40%);
               background-size: 200% 100%; animation: slide 1s linear infinite; margin-bottom: 8px; }
    @keyframes slide { from { background-position: 100% 0; } to { background-position: -100% 0; } }
    .pager { margin-top: 10px; font-size: 12px; color: #91a4b7; }
"""

# Grid protocol: a row is replaced only after the server confirms the write;
# on failure it stays in edit mode with the draft kept.
_GRID_SCRIPT = """
  const CONFIG = __CONFIG__;
  const PAGE_SIZE = 5;
  const state = { rows: [], modes: {}, drafts: {}, page: 0 };
  const gridEl = document.getElementById('grid');
  const pagerEl = document.getElementById('pager');
  const loadingEl = document.getElementById('loading');
  const snackbarEl = document.getElementById('snackbar');
  let snackbarTimer = null;

  function authHeaders() {
    const headers = { 'Content-Type': 'application/json' };
    const token = localStorage.getItem('token');
    if (token) headers['Authorization'] = `Bearer ${token}`;
    return headers;
  }

  async function request(url, options = {}) {
    const response = await fetch(url, { headers: authHeaders(), ...options });
    let data = null;
    try { data = await response.json(); } catch (err) { data = null; }
    if (response.status === 401) {
      // Expired or missing token: sign in again.
      localStorage.removeItem('token');
      window.location.href = '/ui/login';
    }
    if (!response.ok) {
      throw new Error((data && (data.error || data.detail)) || 'Something went wrong in server.');
    }
    return data;
  }

  function notify(message, severity) {
    snackbarEl.textContent = message;
    snackbarEl.className = `snackbar ${severity}`;
    snackbarEl.hidden = false;
    clearTimeout(snackbarTimer);
    snackbarTimer = setTimeout(dismiss, 4000);
  }

  function dismiss() { snackbarEl.hidden = true; }
  snackbarEl.onclick = dismiss;

  function rowId(row) { return String(row[CONFIG.key]); }

  async function load() {
    loadingEl.hidden = false;
    try {
      state.rows = await request(CONFIG.url);
      state.page = Math.min(state.page, pageCount() - 1);
      render();
    } catch (err) {
      notify(err.message, 'error');
    } finally {
      loadingEl.hidden = true;
    }
  }

  function pageCount() { return Math.max(1, Math.ceil(state.rows.length / PAGE_SIZE)); }

  function setPage(page) {
    state.page = Math.min(Math.max(page, 0), pageCount() - 1);
    render();
  }

  function startEdit(id) {
    const row = state.rows.find((r) => rowId(r) === id);
    state.modes[id] = 'edit';
    state.drafts[id] = { ...row };
    render();
  }

  function cancelEdit(id) {
    const row = state.rows.find((r) => rowId(r) === id);
    state.modes[id] = 'view';
    delete state.drafts[id];
    if (row && row.isNew) state.rows = state.rows.filter((r) => rowId(r) !== id);
    state.page = Math.min(state.page, pageCount() - 1);
    render();
  }

  function addRow() {
    const id = `new-${Date.now()}`;
    const row = { isNew: true };
    CONFIG.columns.forEach((c) => { row[c.field] = ''; });
    row[CONFIG.key] = id;
    state.rows = [row, ...state.rows];
    state.page = 0;
    state.modes[id] = 'edit';
    state.drafts[id] = { ...row };
    render();
  }

  function payloadFrom(draft, includeKey) {
    const body = {};
    CONFIG.columns.forEach((c) => {
      if (c.editable || (includeKey && c.field === CONFIG.key && CONFIG.key !== 'id')) body[c.field] = draft[c.field];
    });
    return body;
  }

  async function save(id) {
    const draft = state.drafts[id];
    const row = state.rows.find((r) => rowId(r) === id);
    try {
      let saved;
      if (row.isNew) {
        const result = await request(CONFIG.url, { method: 'POST', body: JSON.stringify(payloadFrom(draft, true)) });
        saved = result.record || { ...draft, isNew: false, [CONFIG.key]: result.id };
      } else {
        const result = await request(`${CONFIG.url}/${encodeURIComponent(id)}`, { method: 'PUT', body: JSON.stringify(payloadFrom(draft, false)) });
        saved = result.record || { ...draft, isNew: false };
      }
      state.rows = state.rows.map((r) => (rowId(r) === id ? saved : r));
      delete state.drafts[id];
      delete state.modes[id];
      state.modes[rowId(saved)] = 'view';
      notify(`${CONFIG.label} successfully saved`, 'success');
    } catch (err) {
      state.modes[id] = 'edit';
      notify(err.message, 'error');
    }
    render();
  }

  async function remove(id) {
    try {
      await request(`${CONFIG.url}/${encodeURIComponent(id)}`, { method: 'DELETE' });
      state.rows = state.rows.filter((r) => rowId(r) !== id);
      delete state.modes[id];
      state.page = Math.min(state.page, pageCount() - 1);
      notify(`${CONFIG.label} deleted`, 'success');
      render();
    } catch (err) {
      notify(err.message, 'error');
    }
  }

  function button(label, onClick, secondary) {
    const btn = document.createElement('button');
    btn.textContent = label;
    if (secondary) btn.className = 'secondary';
    btn.onclick = onClick;
    return btn;
  }

  function render() {
    gridEl.innerHTML = '';
    renderPager();
    const head = document.createElement('tr');
    CONFIG.columns.forEach((c) => {
      const th = document.createElement('th');
      th.textContent = c.header;
      head.appendChild(th);
    });
    head.appendChild(document.createElement('th')).textContent = 'Actions';
    gridEl.appendChild(head);

    if (state.rows.length === 0) {
      const tr = document.createElement('tr');
      const td = document.createElement('td');
      td.colSpan = CONFIG.columns.length + 1;
      td.textContent = 'No rows';
      tr.appendChild(td);
      gridEl.appendChild(tr);
      return;
    }

    const start = state.page * PAGE_SIZE;
    state.rows.slice(start, start + PAGE_SIZE).forEach((row) => {
      const id = rowId(row);
      const editing = state.modes[id] === 'edit';
      const tr = document.createElement('tr');
      CONFIG.columns.forEach((c) => {
        const td = document.createElement('td');
        const canEdit = c.editable || (row.isNew && c.field === CONFIG.key && CONFIG.key !== 'id');
        if (editing && canEdit) {
          const input = document.createElement('input');
          input.type = c.type || 'text';
          input.value = state.drafts[id][c.field] ?? '';
          input.oninput = (event) => { state.drafts[id][c.field] = event.target.value; };
          td.appendChild(input);
        } else {
          td.textContent = row.isNew && c.field === CONFIG.key ? '' : (row[c.field] ?? '');
        }
        tr.appendChild(td);
      });
      const actions = document.createElement('td');
      if (editing) {
        actions.appendChild(button('Save', () => save(id)));
        actions.appendChild(button('Cancel', () => cancelEdit(id), true));
      } else {
        actions.appendChild(button('Edit', () => startEdit(id), true));
        actions.appendChild(button('Delete', () => remove(id), true));
      }
      tr.appendChild(actions);
      gridEl.appendChild(tr);
    });
  }

  function renderPager() {
    pagerEl.innerHTML = '';
    const span = document.createElement('span');
    span.textContent = `Page ${state.page + 1} of ${pageCount()} (${state.rows.length} rows) `;
    pagerEl.appendChild(span);
    const prev = button('Previous', () => setPage(state.page - 1), true);
    prev.disabled = state.page === 0;
    const next = button('Next', () => setPage(state.page + 1), true);
    next.disabled = state.page >= pageCount() - 1;
    pagerEl.appendChild(prev);
    pagerEl.appendChild(next);
  }

  const modalEl = document.getElementById('modal');
  const formEl = document.getElementById('record-form');

  function validate(values) {
    const errors = {};
    CONFIG.form.forEach((f) => {
      const value = (values[f.name] || '').trim();
      if (f.required && !value) errors[f.name] = 'Required';
      else if (f.type === 'number' && (Number.isNaN(Number(value)) || Number(value) < 0)) errors[f.name] = 'Must be a non-negative number';
      else if (f.type === 'number' && !/^\\d*(\\.\\d{0,2})?$/.test(value)) errors[f.name] = 'At most two decimal places';
      else if (f.type === 'email' && !/^[^@\\s]+@[^@\\s]+\\.[^@\\s]+$/.test(value)) errors[f.name] = 'Invalid e-mail address';
    });
    return errors;
  }

  document.getElementById('open-modal').onclick = () => modalEl.classList.add('open');
  document.getElementById('close-modal').onclick = () => modalEl.classList.remove('open');

  formEl.onsubmit = async (event) => {
    event.preventDefault();
    const values = Object.fromEntries(new FormData(formEl).entries());
    const errors = validate(values);
    formEl.querySelectorAll('.field-error').forEach((el) => { el.textContent = errors[el.dataset.for] || ''; });
    if (Object.keys(errors).length) return;
    try {
      const body = { ...values };
      CONFIG.form.forEach((f) => { if (f.type === 'number') body[f.name] = Number(values[f.name]); });
      const result = await request(CONFIG.url, { method: 'POST', body: JSON.stringify(body) });
      notify(result.msg, 'success');
      modalEl.classList.remove('open');
      formEl.reset();
      load();
    } catch (err) {
      notify(err.message, 'error');
    }
  };

  const addRowEl = document.getElementById('add-row');
  if (addRowEl) addRowEl.onclick = addRow;

  load();
"""


def _form_fields_html(fields: List[Dict[str, Any]]) -> str:
    parts = []
    for field in fields:
        name = html.escape(field["name"])
        input_type = "text" if field.get("type") == "number" else html.escape(field.get("type", "text"))
        parts.append(
            f"<label for='{name}'>{html.escape(field['label'])}</label>"
            f"<input id='{name}' name='{name}' type='{input_type}' />"
            f"<div class='field-error' data-for='{name}'></div>"
        )
    return "\n      ".join(parts)


def _grid_page(
    *,
    title: str,
    label: str,
    resource: str,
    key: str,
    columns: List[Dict[str, Any]],
    form_fields: List[Dict[str, Any]],
    allow_inline_add: bool,
) -> str:
    config = {
        "url": f"{API_PREFIX}/{resource}",
        "key": key,
        "label": label,
        "columns": columns,
        "form": form_fields,
    }
    script = _GRID_SCRIPT.replace("__CONFIG__", json.dumps(config))
    add_row_html = "<button id='add-row' class='secondary'>Add row</button>" if allow_inline_add else ""
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{html.escape(title)}</title>
  <style>{_STYLE}</style>
</head>
<body>
  <h1>{html.escape(title)}</h1>
  <div class="toolbar">
    <button id="open-modal">Add {html.escape(label)}</button>
    {add_row_html}
    <a href="/ui/login" style="color:#91a4b7;margin-left:8px">Login</a>
  </div>
  <div id="loading" class="loading" hidden></div>
  <table id="grid"></table>
  <div id="pager" class="pager"></div>
  <div class="modal" id="modal">
    <form class="card" id="record-form" novalidate>
      <h1>{html.escape(title)}</h1>
      {_form_fields_html(form_fields)}
      <div style="margin-top:14px">
        <button type="submit">Submit</button>
        <button type="button" class="secondary" id="close-modal">Cancel</button>
      </div>
    </form>
  </div>
  <div id="snackbar" class="snackbar" hidden></div>
<script>{script}</script>
</body>
</html>"""


def _login_html() -> str:
    login_url = json.dumps(f"{API_PREFIX}/users/login")
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Login</title>
  <style>{_STYLE}</style>
</head>
<body>
  <form class="card" id="login-form">
    <h1>Login</h1>
    <label for="username">Username</label>
    <input id="username" name="username" required />
    <label for="password">Password</label>
    <input id="password" name="password" type="password" required />
    <div style="margin-top:14px"><button type="submit">Sign in</button></div>
    <div class="field-error" id="login-error"></div>
  </form>
<script>
  document.getElementById('login-form').onsubmit = async (event) => {{
    event.preventDefault();
    const values = Object.fromEntries(new FormData(event.currentTarget).entries());
    const errorEl = document.getElementById('login-error');
    try {{
      const response = await fetch({login_url}, {{
        method: 'POST',
        headers: {{ 'Content-Type': 'application/json' }},
        body: JSON.stringify(values),
      }});
      const data = await response.json();
      if (!response.ok || !data.auth) {{
        errorEl.textContent = (data && (data.msg || data.error)) || 'Login failed';
        return;
      }}
      localStorage.setItem('token', data.msg);
      window.location.href = '/ui/customers';
    }} catch (err) {{
      errorEl.textContent = err.message;
    }}
  }};
</script>
</body>
</html>"""


@router.get("/login", response_class=HTMLResponse)
def login_page():
    return HTMLResponse(_login_html())


@router.get("/customers", response_class=HTMLResponse)
def customers_page():
    return HTMLResponse(
        _grid_page(
            title="Customers",
            label="Customer",
            resource="customers",
            key="id",
            columns=CUSTOMER_COLUMNS,
            form_fields=CUSTOMER_FORM_FIELDS,
            allow_inline_add=True,
        )
    )


@router.get("/products", response_class=HTMLResponse)
def products_page():
    return HTMLResponse(
        _grid_page(
            title="Products",
            label="Product",
            resource="products",
            key="code",
            columns=PRODUCT_COLUMNS,
            form_fields=PRODUCT_FORM_FIELDS,
            allow_inline_add=False,
        )
    )
