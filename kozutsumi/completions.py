"""Shell completion scripts generated from the argparse parser.

Subcommands, their options and fixed choices come from the parser itself.
Parcel names are completed at runtime by calling ``list --names``.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass, field

SHELLS = ("bash", "zsh", "fish")


@dataclass
class CommandSpec:
    name: str
    help: str = ""
    options: list[str] = field(default_factory=list)
    choices: list[str] = field(default_factory=list)
    takes_parcel: bool = False


def _subparsers_action(parser: argparse.ArgumentParser) -> argparse._SubParsersAction | None:
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return action
    return None


def _options(parser: argparse.ArgumentParser) -> list[str]:
    options: list[str] = []
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            continue
        options.extend(opt for opt in action.option_strings if opt.startswith("--"))
    return options


def _positional_choices(parser: argparse.ArgumentParser) -> list[str]:
    choices: list[str] = []
    for action in parser._actions:
        if action.option_strings or action.choices is None:
            continue
        if isinstance(action, argparse._SubParsersAction):
            continue
        choices.extend(str(choice) for choice in action.choices)
    return choices


def collect_commands(parser: argparse.ArgumentParser, parcel_commands: Sequence[str]) -> list[CommandSpec]:
    action = _subparsers_action(parser)
    if action is None:
        return []
    helps = {choice.dest: choice.help or "" for choice in action._choices_actions}
    commands: list[CommandSpec] = []
    for name, subparser in action.choices.items():
        commands.append(
            CommandSpec(
                name=name,
                help=helps.get(name, ""),
                options=_options(subparser),
                choices=_positional_choices(subparser),
                takes_parcel=name in parcel_commands,
            )
        )
    return commands


def _bash(prog: str, global_options: list[str], commands: list[CommandSpec]) -> str:
    func = "_" + prog.replace("-", "_")
    names = " ".join(command.name for command in commands)
    lines = [
        f"{func}() {{",
        '    local cur prev cmd i',
        '    cur="${COMP_WORDS[COMP_CWORD]}"',
        '    prev="${COMP_WORDS[COMP_CWORD-1]}"',
        '    cmd=""',
        '    for ((i=1; i<COMP_CWORD; i++)); do',
        '        case "${COMP_WORDS[i]}" in',
        f'            {"|".join(command.name for command in commands)}) cmd="${{COMP_WORDS[i]}}"; break ;;',
        '        esac',
        '    done',
        '    if [[ "$prev" == "-c" || "$prev" == "--config" ]]; then',
        '        COMPREPLY=($(compgen -f -- "$cur"))',
        '        return',
        '    fi',
        '    if [[ -z "$cmd" ]]; then',
        f'        COMPREPLY=($(compgen -W "{names} {" ".join(global_options)}" -- "$cur"))',
        '        return',
        '    fi',
        '    case "$cmd" in',
    ]
    for command in commands:
        words = " ".join(command.options + command.choices)
        lines.append(f"        {command.name})")
        if command.takes_parcel:
            lines.extend(
                [
                    '            if [[ "$cur" == -* ]]; then',
                    f'                COMPREPLY=($(compgen -W "{words}" -- "$cur"))',
                    "            else",
                    f'                COMPREPLY=($(compgen -W "$({prog} list --names 2>/dev/null)" -- "$cur"))',
                    "            fi",
                ]
            )
        else:
            lines.append(f'            COMPREPLY=($(compgen -W "{words}" -- "$cur"))')
        lines.append("            ;;")
    lines.extend(["    esac", "}", f"complete -F {func} {prog}", ""])
    return "\n".join(lines)


def _zsh_quote(text: str) -> str:
    return text.replace("'", "'\\''").replace(":", "\\:")


def _zsh(prog: str, global_options: list[str], commands: list[CommandSpec]) -> str:
    func = "_" + prog.replace("-", "_")
    lines = [
        f"#compdef {prog}",
        "",
        f"{func}() {{",
        "    local -a commands",
        "    commands=(",
    ]
    lines.extend(f"        '{command.name}:{_zsh_quote(command.help)}'" for command in commands)
    lines.extend(
        [
            "    )",
            "    if (( CURRENT == 2 )) || [[ ${words[CURRENT]} != -* && -z ${words[(r)(" + "|".join(command.name for command in commands) + ")]} ]]; then",
            "        _describe 'command' commands",
            f"        compadd -- {' '.join(global_options)}",
            "        return",
            "    fi",
            "    case ${words[(r)(" + "|".join(command.name for command in commands) + ")]} in",
        ]
    )
    for command in commands:
        lines.append(f"        {command.name})")
        if command.options:
            lines.append(f"            compadd -- {' '.join(command.options)}")
        if command.choices:
            lines.append(f"            compadd -- {' '.join(command.choices)}")
        if command.takes_parcel:
            lines.append(f"            compadd -- ${{(f)\"$({prog} list --names 2>/dev/null)\"}}")
        lines.append("            ;;")
    lines.extend(["    esac", "}", "", f'{func} "$@"', ""])
    return "\n".join(lines)


def _fish(prog: str, global_options: list[str], commands: list[CommandSpec]) -> str:
    lines = [f"complete -c {prog} -f"]
    for option in global_options:
        lines.append(f"complete -c {prog} -n '__fish_use_subcommand' -l {option[2:]}")
    for command in commands:
        description = command.help.replace("'", "\\'")
        lines.append(f"complete -c {prog} -n '__fish_use_subcommand' -a {command.name} -d '{description}'")
        condition = f"__fish_seen_subcommand_from {command.name}"
        for option in command.options:
            lines.append(f"complete -c {prog} -n '{condition}' -l {option[2:]}")
        if command.choices:
            lines.append(f"complete -c {prog} -n '{condition}' -a '{' '.join(command.choices)}'")
        if command.takes_parcel:
            lines.append(f"complete -c {prog} -n '{condition}' -a '({prog} list --names 2>/dev/null)'")
    lines.append("")
    return "\n".join(lines)


_GENERATORS = {"bash": _bash, "zsh": _zsh, "fish": _fish}


def generate(shell: str, parser: argparse.ArgumentParser, prog: str, parcel_commands: Sequence[str] = ()) -> str:
    """Return the completion script for ``shell``."""
    try:
        generator = _GENERATORS[shell]
    except KeyError:
        raise ValueError(f"unsupported shell: {shell}") from None
    return generator(prog, _options(parser), collect_commands(parser, parcel_commands))
