"""Abre la app de hábitos (calendario, check-ins y métricas) con Kivy."""

from __future__ import annotations

from habit_tool.app import run_app


def main() -> int:
    """Run the habit_tool GUI; 1 when Kivy is not installed."""
    try:
        return run_app()
    except ImportError as exc:
        print(f"No se pudo abrir la app de hábitos (falta Kivy): {exc}")
        print("Instala el extra GUI: pip install 'habit-tool[gui]'")
        print("Sin GUI, usa la línea de comandos: habit-tool --help")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
