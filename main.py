from dataclasses import dataclass

from rich.pretty import pprint

from typeline import *

__prog__ = "typeline"

registry = TypeRegistry()


@registry.register
@dataclass
class SetGold:
    gold: int


@registry.register
@dataclass
class ReflectMultiArgs:
    arg0: int
    arg1: str = ""
    arg2: SetGold | None = None


if __name__ == '__main__':
    prompt = Prompt(registry, shell=True)
    for resolved in prompt.loop(lambda: input("> ")):
        if resolved is not None:
            pprint(resolved.value)
