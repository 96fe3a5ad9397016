from rich.pretty import pprint

from argot import *

parser = Parser(shell=True, colorful=True)

string = parser.option("-s", "--string").mark_required().help("a string to print")
number = parser.option("-n", "--number", type=int).default(3).help("number of times to print the string")
verbose = parser.multi_flag("-v", "--verbose").help("print the parsed declarations (repeat for more)")


if __name__ == '__main__':
    parser.parse()
    if verbose.count:
        pprint([string, number, verbose], expand_all=verbose.count > 1)
    for _ in range(number.value):
        print(string.value)
