import sys
import json
import logging
import argparse

from Core import OoOCore

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='ooo-sim',
        description='Run a program through the out-of-order core and '
                    'write one state snapshot per cycle as JSON.')
    parser.add_argument('input', help='JSON list of instructions, e.g. ["addi x1, x0, 5"]')
    parser.add_argument('output', help='JSON file receiving the per-cycle log')
    parser.add_argument('--rob-size', type=int, default=None, help='ROB entries (default 32)')
    parser.add_argument('--rob-banks', type=int, default=None, help='ROB banks (default 2)')
    parser.add_argument('--isq-size', type=int, default=None, help='issue queue entries (default 32)')
    parser.add_argument('--alu-latency', type=int, default=None, help='ALU stages (default 1)')
    parser.add_argument('--commit-width', type=int, default=None, help='commits per cycle (default 1)')
    parser.add_argument('--max-cycles', type=int, default=100, help='stop after this many cycles')
    parser.add_argument('--verbose', '-v', action='store_true', help='trace every pipeline phase')
    parser.add_argument('--quiet', '-q', action='store_true', help='only report errors')
    return parser.parse_args(argv)

def setup_logging(args: argparse.Namespace) -> None:
    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level,
                        format='%(levelname)s: %(name)s: %(message)s',
                        force=True)

def simulate(instructions: list[str], max_cycles: int = 100, **config) -> list[dict]:
    ''' run to completion or `max_cycles`; entry 0 is the reset state '''
    core = OoOCore(program=instructions, **config)
    log: list = [core.dump()]

    stop = core.done
    while not stop:
        stop = core.next()
        log.append(core.dump())

        if not stop and core.cycle >= max_cycles:
            logger.warning('cycle limit %d reached with %d instruction(s) in flight',
                           max_cycles, len(core.rob))
            break
    logger.info('%d instruction(s) retired in %d cycle(s)', len(core.retired), core.cycle)
    return log

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args)

    try:
        with open(args.input, 'r') as fin:
            instructions: list[str] = json.load(fin)
    except (OSError, json.JSONDecodeError) as e:
        logger.error('cannot read program %s: %s', args.input, e)
        return 1
    if not isinstance(instructions, list) or not all(isinstance(i, str) for i in instructions):
        logger.error('%s must hold a JSON list of instruction strings', args.input)
        return 1

    try:
        log = simulate(instructions,
                       max_cycles=args.max_cycles,
                       rob_capacity=args.rob_size,
                       rob_banks=args.rob_banks,
                       isq_capacity=args.isq_size,
                       alu_latency=args.alu_latency,
                       commit_width=args.commit_width)
    except ValueError as e:
        logger.error('%s', e)
        return 1

    with open(args.output, 'w') as fout:
        json.dump(log, fout, indent=4)
    return 0

if __name__ == '__main__':
    sys.exit(main())
