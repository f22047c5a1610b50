"""
CLI модуль registry_collector.

Команды:
- stages: список stage'ей из конфигурации
- services: микросервисы stage (таблица или JSON)
- serve: запуск Web API (uvicorn)

Примеры использования:
    python -m registry_collector stages
    python -m registry_collector services qa
    python -m registry_collector services qa --format json --name BILLING
    python -m registry_collector -c config.yaml serve --port 8080
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from .collectors import MicroserviceCollector
from .config import load_config, set_config
from .core.config_schema import AppConfig
from .core.exceptions import RegistryCollectorError, format_error_for_log
from .core.logging import LogConfig, setup_logging_from_config
from .core.models import Microservice

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """
    Создаёт парсер аргументов командной строки.

    Returns:
        ArgumentParser: Настроенный парсер
    """
    parser = argparse.ArgumentParser(
        prog="registry_collector",
        description="Микросервисы из реестра сервисов по stage'ам",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры:
  %(prog)s stages
  %(prog)s services qa --format json
  %(prog)s serve --port 8080
        """,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Подробный вывод (DEBUG)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Путь к файлу конфигурации YAML (default: config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Команды")

    subparsers.add_parser("stages", help="Список stage'ей")

    services_parser = subparsers.add_parser("services", help="Микросервисы stage")
    services_parser.add_argument("stage", help="Имя stage (dev, qa, prod)")
    services_parser.add_argument(
        "--format",
        "-f",
        choices=["table", "json"],
        default="table",
        help="Формат вывода (default: table)",
    )
    services_parser.add_argument(
        "--name",
        default=None,
        help="Показать только один сервис",
    )

    serve_parser = subparsers.add_parser("serve", help="Запуск Web API")
    serve_parser.add_argument("--host", default=None, help="Адрес (default: из config.yaml)")
    serve_parser.add_argument("--port", type=int, default=None, help="Порт (default: из config.yaml)")

    return parser


def _setup_logging(app_config: AppConfig, verbose: bool) -> None:
    """Логирование из config.yaml; -v имеет приоритет над уровнем из файла."""
    log_config = LogConfig.from_dict(app_config.logging.model_dump())
    if verbose:
        log_config.level = logging.DEBUG
    setup_logging_from_config(log_config)


def format_table(services: Dict[str, Microservice]) -> List[str]:
    """Строки таблицы: имя, хосты с портами, consumes, владелец."""
    lines = [f"{'NAME':<30} {'HOSTS':<40} {'CONSUMES':<30} OWNER"]
    for name in sorted(services):
        service = services[name]
        hosts = ", ".join(
            f"{host.host_name or host.ip_addr or '?'}:{'/'.join(str(p) for p in host.ports)}"
            for host in service.hosts
        )
        consumes = ", ".join(c.target for c in service.consumes)
        owner = service.get("fdOwner", "")
        lines.append(f"{name:<30} {hosts:<40} {consumes:<30} {owner}")
    return lines


def cmd_stages(collector: MicroserviceCollector, args) -> int:
    """Печатает stage'и, по одному в строке."""
    for stage in sorted(collector.get_all_stage_names()):
        print(stage)
    return 0


def cmd_services(collector: MicroserviceCollector, args) -> int:
    """Печатает микросервисы stage."""
    services = collector.get_all_microservices(args.stage)

    if args.name:
        if args.name not in services:
            print(f'Microservice "{args.name}" not found in stage "{args.stage}"', file=sys.stderr)
            return 1
        services = {args.name: services[args.name]}

    if args.format == "json":
        data = {name: service.to_dict() for name, service in services.items()}
        print(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True))
    else:
        for line in format_table(services):
            print(line)
        print(f"\nTotal: {len(services)}")
    return 0


def cmd_serve(app_config: AppConfig, args) -> int:
    """Запускает Web API через uvicorn."""
    import uvicorn

    uvicorn.run(
        "registry_collector.api.main:app",
        host=args.host or app_config.api.host,
        port=args.port or app_config.api.port,
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Главная функция CLI.

    Returns:
        int: Код выхода (0 - успех, 1 - ошибка)
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        app_config = load_config(args.config)
    except RegistryCollectorError as e:
        print(f"Ошибка: {format_error_for_log(e)}", file=sys.stderr)
        return 1

    # Команды и API используют один и тот же загруженный конфиг
    set_config(app_config)
    _setup_logging(app_config, args.verbose)

    if args.command == "serve":
        return cmd_serve(app_config, args)

    collector = MicroserviceCollector.from_config(app_config)
    handlers = {
        "stages": cmd_stages,
        "services": cmd_services,
    }
    try:
        return handlers[args.command](collector, args)
    except RegistryCollectorError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Ошибка: {format_error_for_log(e)}", file=sys.stderr)
        return 1
