"""
Price Verification Client
Asks Gemini (with web-search grounding) for regional price lists and maps the
reply into a SearchResult.

Expected reply payload:
{
    "products": [
        {
            "productName": str,        # required, non-empty
            "presentation": str,
            "packType": str,
            "estimatedPrice": number,  # required, finite, >= 0
            "currency": str,
            "notes": str
        }
    ],
    "groundingUrls": [{"title": str, "uri": str}]   # optional
}

Anything that does not fit is rejected as a whole; a pricing tool never
returns partial data.
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from google import genai
from google.genai import types

from price_quoter import config
from price_quoter.models import Citation, ProductPriceLine, Region, SearchResult
from price_quoter.verification.errors import ErrorKind, VerificationError


PRICE_PROMPT = """
Eres un verificador de precios de cerveza para tiendas minoristas en México.

Busca en la web los precios vigentes del siguiente producto en la zona indicada:
- Precio de agencia (mayoreo) por empaque completo
- Precio de Modelorama (menudeo)
Incluye promociones vigentes de agencia, mayoreo y modeloramas en las notas.

Producto o SKU: "{query}"
Zona: {region}

Responde SOLO con JSON válido (sin bloques de código markdown):
{{
  "products": [
    {{
      "productName": "Corona Extra Bote 355ml",
      "presentation": "Lata 355ml",
      "packType": "Charola 24",
      "estimatedPrice": 305.5,
      "currency": "MXN",
      "notes": "Precio agencia, promo vigente"
    }}
  ],
  "groundingUrls": [
    {{"title": "Título de la fuente", "uri": "https://..."}}
  ]
}}

REGLAS:
- estimatedPrice es un número (sin símbolo de moneda), nunca texto
- Usa "" cuando un campo de texto no aplique; nunca omitas campos
- Si no encuentras el producto, devuelve "products": []
"""

_TEXT_FIELDS = {
    "presentation": "presentation",
    "packType": "pack_type",
    "currency": "currency",
    "notes": "notes",
}


@dataclass(frozen=True)
class VerificationRequest:
    """Outbound request: the trimmed search term and the region label"""
    query: str
    region: str

    @classmethod
    def build(cls, term: str, region: Region) -> "VerificationRequest":
        query = (term or "").strip()
        if not query:
            raise VerificationError(ErrorKind.EMPTY_INPUT, "Search term is empty")
        return cls(query=query, region=region.label)

    def to_payload(self) -> Dict[str, str]:
        return {"query": self.query, "region": self.region}

    def to_prompt(self) -> str:
        return PRICE_PROMPT.format(query=self.query.replace('"', "'"), region=self.region)


def build_generate_config() -> types.GenerateContentConfig:
    """Generation settings; Gemini 2.x grounds on the google_search tool"""
    tools = None
    if config.ENABLE_SEARCH_GROUNDING:
        tools = [types.Tool(google_search=types.GoogleSearch())]
    return types.GenerateContentConfig(tools=tools)


class PriceVerifier:
    """Stateless client for the price verification service"""

    def __init__(self, client=None, model_name=None):
        """
        Initialize the verifier with a Gemini client

        Args:
            client: Object exposing models.generate_content(model=, contents=, config=).
                Defaults to a genai.Client on config.GOOGLE_API_KEY.
            model_name: Gemini model (defaults to config.GEMINI_MODEL)
        """
        self.client = client or genai.Client(api_key=config.GOOGLE_API_KEY)
        self.model_name = model_name or config.GEMINI_MODEL
        self.generate_config = build_generate_config()

    def verify(self, term: str, region: Region) -> SearchResult:
        """
        Look up estimated prices for a product in a region

        Args:
            term: Product name or scanned SKU (must not be blank)
            region: Market to price in

        Returns:
            SearchResult with products and reference sources

        Raises:
            VerificationError: EMPTY_INPUT, TRANSPORT_FAILURE or MALFORMED_RESPONSE
        """
        request = VerificationRequest.build(term, region)

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=request.to_prompt(),
                config=self.generate_config,
            )
        except Exception as e:
            raise VerificationError(
                ErrorKind.TRANSPORT_FAILURE,
                f"Price service call failed for '{request.query}'",
                cause=e,
            ) from e

        try:
            response_text = response.text or ""
        except ValueError as e:
            # Blocked or empty candidate: the service answered without usable text
            raise VerificationError(
                ErrorKind.MALFORMED_RESPONSE, "Price service returned no text", cause=e
            ) from e

        payload = parse_payload(response_text)
        products = tuple(_parse_product(item, idx) for idx, item in enumerate(payload["products"]))
        citations = grounding_citations(response) + _parse_payload_citations(payload)

        return SearchResult(products=products, grounding_urls=tuple(citations))


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    text = re.sub(r'^```json\s*', '', text)
    text = re.sub(r'^```\s*', '', text)
    text = re.sub(r'\s*```$', '', text)
    return text.strip()


def parse_payload(response_text: str) -> Dict[str, Any]:
    """Decode the reply JSON and check its top-level shape"""
    cleaned = _strip_code_fences(response_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise VerificationError(
            ErrorKind.MALFORMED_RESPONSE, "Price service reply is not valid JSON", cause=e
        ) from e

    if not isinstance(payload, dict):
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, "Reply is not a JSON object")
    if not isinstance(payload.get("products"), list):
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, "Reply has no product list")
    return payload


def _as_text(value: Any) -> str:
    if value is None or value == "null":
        return ""
    return str(value).strip()


def _as_price(value: Any, idx: int) -> float:
    if isinstance(value, bool):
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Product {idx}: price is not numeric")
    if isinstance(value, str):
        value = value.strip().lstrip("$").replace(",", "").strip()
    try:
        price = float(value)
    except (TypeError, ValueError) as e:
        raise VerificationError(
            ErrorKind.MALFORMED_RESPONSE, f"Product {idx}: price {value!r} is not numeric", cause=e
        ) from e
    if not math.isfinite(price) or price < 0:
        raise VerificationError(
            ErrorKind.MALFORMED_RESPONSE, f"Product {idx}: price {price} is out of range"
        )
    # -0.0 passes the range check; store it as 0.0
    return price + 0.0


def _parse_product(item: Any, idx: int) -> ProductPriceLine:
    if not isinstance(item, dict):
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Product {idx} is not an object")

    name = _as_text(item.get("productName"))
    if not name:
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Product {idx} has no name")
    if "estimatedPrice" not in item:
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Product {idx} has no price")

    fields = {attr: _as_text(item.get(key)) for key, attr in _TEXT_FIELDS.items()}
    return ProductPriceLine(
        product_name=name,
        estimated_price=_as_price(item["estimatedPrice"], idx),
        **fields,
    )


def _parse_payload_citations(payload: Dict[str, Any]) -> List[Citation]:
    records = payload.get("groundingUrls")
    if records is None:
        return []
    if not isinstance(records, list):
        raise VerificationError(ErrorKind.MALFORMED_RESPONSE, "groundingUrls is not a list")

    citations = []
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Source {idx} is not an object")
        uri = _as_text(record.get("uri"))
        if not uri:
            raise VerificationError(ErrorKind.MALFORMED_RESPONSE, f"Source {idx} has no uri")
        citations.append(Citation(title=_as_text(record.get("title")) or uri, uri=uri))
    return citations


def grounding_citations(response) -> List[Citation]:
    """Web sources from the first candidate's grounding metadata, in service order"""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    citations = []
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        uri = _as_text(getattr(web, "uri", ""))
        if not uri:
            continue
        citations.append(Citation(title=_as_text(getattr(web, "title", "")) or uri, uri=uri))
    return citations
