"""Jinja2 templates for the order and access-code emails.

HTML templates are autoescaped; every value coming from an order payload
is untrusted. The ``.txt`` variants are sent as the plain-text alternative.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import jinja2

from orderform.core.config import settings

_ORDER_TABLE_HTML = """\
{% macro order_table(order) -%}
<div style="font-family: Arial, sans-serif; color: #333;">
  <p style="text-align: right;">Date: {{ order.date }}</p>
  <h3 style="color: #1e3a8a; border-bottom: 2px solid #1e3a8a;">SUPPLIER</h3>
  <div><strong>{{ company.name }}</strong></div>
  {% if company.director %}<div>{{ company.director }}</div>{% endif %}
  {% if company.address %}<div>{{ company.address }}</div>{% endif %}
  {% if company.postal_code %}<div>{{ company.postal_code }}</div>{% endif %}
  {% if company.phone %}<div>Phone: {{ company.phone }}</div>{% endif %}
  {% if company.email %}<div>Email: {{ company.email }}</div>{% endif %}
  {% if company.vat_number %}<div>VAT: {{ company.vat_number }}</div>{% endif %}
  <h3 style="color: #1e3a8a; border-bottom: 2px solid #1e3a8a;">CLIENT</h3>
  <div>Name: {{ order.client.name }}</div>
  {% if order.client.company %}<div>Company: {{ order.client.company }}</div>{% endif %}
  {% if order.client.address %}<div>Address: {{ order.client.address }}</div>{% endif %}
  {% if order.client.postal_code %}<div>Postal code: {{ order.client.postal_code }}</div>{% endif %}
  {% if order.client.phone %}<div>Phone: {{ order.client.phone }}</div>{% endif %}
  <div>Email: {{ order.client.email }}</div>
  <h3 style="color: #1e3a8a; border-bottom: 2px solid #1e3a8a;">ORDERED PRODUCTS</h3>
  <table style="width: 100%; border-collapse: collapse;">
    <thead>
      <tr style="background-color: #1e3a8a; color: white;">
        <th style="padding: 8px; text-align: left;">Product</th>
        <th style="padding: 8px; text-align: left;">Size</th>
        <th style="padding: 8px; text-align: center;">Quantity</th>
        <th style="padding: 8px; text-align: right;">Unit price</th>
        <th style="padding: 8px; text-align: right;">Total</th>
      </tr>
    </thead>
    <tbody>
    {% for line in lines %}
      <tr>
        <td style="padding: 8px; border-bottom: 1px solid #e5e7eb;">{{ line.product_name }}</td>
        <td style="padding: 8px; border-bottom: 1px solid #e5e7eb;">{{ line.size }}</td>
        <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: center;">{{ line.quantity }}</td>
        <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">{{ line.unit_price | money }}</td>
        <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right; font-weight: bold;">{{ line.total | money }}</td>
      </tr>
    {% endfor %}
    </tbody>
  </table>
  <table style="margin-left: auto; margin-top: 16px;">
    <tr><td style="padding-right: 20px;"><strong>Subtotal excl. VAT:</strong></td><td style="text-align: right;">{{ order.subtotal | money }}</td></tr>
    <tr><td style="padding-right: 20px;"><strong>VAT ({{ vat_percent }}%):</strong></td><td style="text-align: right;">{{ order.vat | money }}</td></tr>
    <tr><td style="padding-right: 20px; color: #1e3a8a;"><strong>TOTAL incl. VAT:</strong></td><td style="text-align: right; color: #1e3a8a;"><strong>{{ order.total | money }}</strong></td></tr>
  </table>
  <div style="margin-top: 24px; padding: 12px; background-color: #f3f4f6; border-radius: 5px; font-size: 12px;">
    <div><strong>Payment:</strong> bank transfer</div>
    <div><strong>Delivery:</strong> {% if free_delivery %}free for this order{% else %}free for orders of {{ free_delivery_threshold | money }} or more{% endif %}</div>
  </div>
</div>
{%- endmacro %}
"""

_ORDER_TABLE_TXT = """\
{% macro order_table(order) -%}
Date: {{ order.date }}

SUPPLIER
{{ company.name }}
{% if company.address %}{{ company.address }}
{% endif %}{% if company.postal_code %}{{ company.postal_code }}
{% endif %}{% if company.vat_number %}VAT: {{ company.vat_number }}
{% endif %}
CLIENT
Name: {{ order.client.name }}
{% if order.client.company %}Company: {{ order.client.company }}
{% endif %}Email: {{ order.client.email }}
{% if order.client.phone %}Phone: {{ order.client.phone }}
{% endif %}
ORDERED PRODUCTS
{% for line in lines -%}
- {{ line.product_name }}{% if line.size %} ({{ line.size }}){% endif %}: {{ line.quantity }} x {{ line.unit_price | money }} = {{ line.total | money }}
{% endfor %}
Subtotal excl. VAT: {{ order.subtotal | money }}
VAT ({{ vat_percent }}%): {{ order.vat | money }}
TOTAL incl. VAT: {{ order.total | money }}
{%- endmacro %}
"""

TEMPLATES = {
    "_order_table.html": _ORDER_TABLE_HTML,
    "_order_table.txt": _ORDER_TABLE_TXT,
    "order_client.html": """\
{% from "_order_table.html" import order_table with context %}
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #1e3a8a;">Your order confirmation</h2>
  <p>Hello {{ order.client.name }},</p>
  <p>We have received your order for a total of <strong>{{ order.total | money }}</strong>.</p>
  <p>The details of your order are below. Thank you for your trust.</p>
  {{ order_table(order) }}
  <p>Kind regards,<br><strong>{{ company.name }}</strong></p>
</div>
""",
    "order_client.txt": """\
{% from "_order_table.txt" import order_table with context %}
Hello {{ order.client.name }},

We have received your order for a total of {{ order.total | money }}.

{{ order_table(order) }}

Kind regards,
{{ company.name }}
""",
    "order_company.html": """\
{% from "_order_table.html" import order_table with context %}
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #1e3a8a;">New order received</h2>
  <p><strong>Client:</strong> {{ order.client.name }}</p>
  {% if order.client.company %}<p><strong>Company:</strong> {{ order.client.company }}</p>{% endif %}
  <p><strong>Email:</strong> {{ order.client.email }}</p>
  {% if order.client.phone %}<p><strong>Phone:</strong> {{ order.client.phone }}</p>{% endif %}
  <p><strong>Order total:</strong> {{ order.total | money }}</p>
  <hr>
  {{ order_table(order) }}
</div>
""",
    "order_company.txt": """\
{% from "_order_table.txt" import order_table with context %}
New order received from {{ order.client.name }} ({{ order.client.email }}).
Order total: {{ order.total | money }}

{{ order_table(order) }}
""",
    "access_code.html": """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #1e3a8a;">New access code</h2>
  <p>A new single-use access code was generated for the order form.</p>
  <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; text-align: center; margin: 30px 0;">
    <p style="margin: 10px 0; font-size: 32px; font-weight: bold; color: #1e3a8a; letter-spacing: 4px;">{{ code }}</p>
  </div>
  <p>Give this code to your client so they can open the order form.</p>
  {% if expires_at %}<p>It expires on {{ expires_at }}.</p>{% endif %}
  <p style="color: #666; font-size: 12px;">The code stops working once it has been used.</p>
</div>
""",
    "access_code.txt": """\
A new single-use access code was generated for the order form: {{ code }}
{% if expires_at %}It expires on {{ expires_at }}.
{% endif %}Give this code to your client; it stops working once used.
""",
}


def money(value: Any) -> str:
    amount = Decimal(str(value)).quantize(Decimal("0.01"))
    return f"{settings.CURRENCY_SYMBOL}{amount:,.2f}"


def build_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.DictLoader(TEMPLATES),
        autoescape=jinja2.select_autoescape(enabled_extensions=("html",)),
        undefined=jinja2.StrictUndefined,
        trim_blocks=False,
    )
    env.filters["money"] = money
    return env


environment = build_environment()


def render(name: str, **context: Any) -> str:
    return environment.get_template(name).render(**context)
