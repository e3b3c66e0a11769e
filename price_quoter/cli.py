"""
Price Quoter - Command Line Front End
Runs one search (typed, scanned or picked from the catalog) and optionally
exports the quotation PDF.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from price_quoter import config
from price_quoter.catalog import CATALOG_CATEGORIES, all_items, find_category
from price_quoter.models import Region
from price_quoter.session import SearchPhase, SearchSession


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="price-quoter",
        description="Consulta precios estimados de agencia y Modelorama por zona.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("term", nargs="?", help="Nombre del producto o SKU")
    source.add_argument("--scan", metavar="TEXT", help="Texto decodificado por el lector de códigos")
    source.add_argument("--pick", type=int, metavar="N", help="Número de producto del catálogo rápido")
    source.add_argument("--list-catalog", action="store_true", help="Mostrar el catálogo rápido")

    parser.add_argument(
        "--region",
        default=config.DEFAULT_REGION,
        choices=[r.label for r in Region],
        help="Zona de referencia (default: %(default)s)",
    )
    parser.add_argument("--pdf", action="store_true", help="Exportar la cotización en PDF")
    parser.add_argument("--output-dir", default=None, help="Carpeta de salida del PDF")
    parser.add_argument("--timeout", type=float, default=None, help="Segundos máximos de espera")
    return parser


def print_catalog() -> None:
    number = 1
    for category in CATALOG_CATEGORIES:
        print(f"\n{category.title.upper()}")
        print("-" * 80)
        for item in category.items:
            print(f"  {number:>3}. {item}")
            number += 1


def print_result(session: SearchSession) -> None:
    state = session.state
    print("\n" + "=" * 80)
    print(f'Resultados para: "{state.query}"  |  Zona de Referencia: {state.region.label}')
    print("=" * 80)

    if not state.result.products:
        print("Sin productos encontrados.")
    for line in state.result.products:
        print(f"- {line.product_name}")
        print(f"    {line.presentation} | {line.pack_type} | "
              f"${line.estimated_price:.2f} {line.currency}")
        if line.notes:
            print(f"    {line.notes}")

    if state.has_citations:
        print("\nFuentes de Referencia:")
        for citation in state.result.grounding_urls:
            print(f"  * {citation.title} - {citation.uri}")


async def run(args, session: SearchSession) -> int:
    if args.scan is not None:
        session.open_scanner()
        await session.scan_complete(args.scan, timeout=args.timeout)
    elif args.pick is not None:
        items = all_items()
        if not 1 <= args.pick <= len(items):
            print(f"[FAIL] El catálogo tiene {len(items)} productos", file=sys.stderr)
            return 2
        item = items[args.pick - 1]
        print(f"Catálogo: {find_category(item).title} > {item}")
        await session.quick_pick(item, timeout=args.timeout)
    else:
        session.set_query(args.term or "")
        if await session.submit(args.term or "", timeout=args.timeout) is None:
            print("[FAIL] Escribe un producto o SKU", file=sys.stderr)
            return 2

    state = session.state
    if state.phase is SearchPhase.ERROR:
        print(f"[FAIL] {state.error_message}", file=sys.stderr)
        return 1

    print_result(session)

    if args.pdf:
        report = session.export_report()
        path = report.save(args.output_dir)
        print(f"\n[OK] Cotización exportada: {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_catalog:
        print_catalog()
        return 0

    try:
        config.validate_config()
    except ValueError as e:
        print(f"[FAIL] Configuration validation failed:\n{e}", file=sys.stderr)
        return 2

    session = SearchSession(region=Region.from_label(args.region))
    return asyncio.run(run(args, session))


if __name__ == "__main__":
    sys.exit(main())
