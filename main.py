import logging

from rich.console import Console

from helmsman import *

# Caller-level policy: more positionals than this prints help and stops.
MAX_ARGS = 3


def optional(context):
    if context.arg is not None:
        print(f"Optional: {context.arg}")
    else:
        print("Optional: enabled")


class MyCommand(Command):
    def __init__(self, name, version, /, *, verbose=False, **options):
        super().__init__(name, version, **options)
        self.verbose = verbose
        self.required = None

    def set_verbose(self, context):
        self.verbose = True

    def set_required(self, context):
        self.required = context.arg


def main():
    command = MyCommand("main.py", "0.0.1", shell=True, colorful=True)
    command.set_usage("[options] [ARG1 [ARG2 [ARG3]]]")

    command.option("-v", "--verbose", "enable verbose stuff", command.set_verbose)
    command.option("-r", "--required <arg>", "required arg", command.set_required)
    command.option("-o", "--optional [arg]", "optional arg", optional)

    command.parse()

    args = command.additional_args()
    if len(args) > MAX_ARGS:
        Console(stderr=True).print("[red]Too many command line arguments were specified[/red]")
        command.help()
    elif args:
        print("Additional args:")
        for arg in args:
            print(f"  - {arg!r}")
    else:
        print("No additional args")

    if command.required is not None:
        print(f"Required is: {command.required}")

    print(f"Verbose status is {'enabled' if command.verbose else 'disabled'}")


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    main()
