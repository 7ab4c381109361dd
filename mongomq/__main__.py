"""
MongoMQ command line

Usage:
    python -m mongomq create-queue orders
    python -m mongomq send orders "payload-1" --max-attempts 3
    python -m mongomq receive orders --max-messages 5
    python -m mongomq delete orders <receipt-handle>
    python -m mongomq attributes orders
    python -m mongomq list-queues --prefix ord
"""
import argparse
import json
import sys

from mongomq.core.logging import setup_logging
from mongomq.services.failover_queue import FailoverQueue
from mongomq.services.lease_queue import LeaseQueue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mongomq", description="SQS-style queues on MongoDB")
    parser.add_argument("--no-failover", action="store_true",
                        help="Use MongoDB only, without the SQS backup")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-queue", help="Create a queue")
    create.add_argument("queue")
    create.add_argument("--visibility-timeout", type=int)

    delete_queue = commands.add_parser("delete-queue", help="Delete a queue")
    delete_queue.add_argument("queue")

    list_queues = commands.add_parser("list-queues", help="List queues")
    list_queues.add_argument("--prefix", default="")

    attributes = commands.add_parser("attributes", help="Show queue attributes")
    attributes.add_argument("queue")

    send = commands.add_parser("send", help="Send a message")
    send.add_argument("queue")
    send.add_argument("body")
    send.add_argument("--max-attempts", type=int, default=1)

    receive = commands.add_parser("receive", help="Receive messages")
    receive.add_argument("queue")
    receive.add_argument("--max-messages", type=int, default=1)
    receive.add_argument("--visibility-timeout", type=int)

    delete = commands.add_parser("delete", help="Delete a message by receipt handle")
    delete.add_argument("queue")
    delete.add_argument("receipt_handle")
    delete.add_argument("--max-attempts", type=int, default=1)

    return parser


def run(args, queue) -> int:
    if args.command == "create-queue":
        result = queue.create_queue(args.queue, args.visibility_timeout)
    elif args.command == "delete-queue":
        result = queue.delete_queue(args.queue)
    elif args.command == "list-queues":
        result = queue.list_queues(args.prefix)
    elif args.command == "attributes":
        result = queue.get_queue_attributes(args.queue)
    elif args.command == "send":
        if isinstance(queue, FailoverQueue):
            result = queue.send_message(args.queue, args.body, max_attempts=args.max_attempts)
        else:
            result = queue.send_message(args.queue, args.body)
    elif args.command == "receive":
        result = queue.receive_message(args.queue, args.max_messages, args.visibility_timeout)
    else:
        if isinstance(queue, FailoverQueue):
            result = queue.delete_message(args.queue, args.receipt_handle, args.max_attempts)
        else:
            result = queue.delete_message(args.queue, args.receipt_handle)

    if not result:
        print(queue.error, file=sys.stderr)
        return 1

    print(json.dumps(_printable(result.value), indent=2, default=str))
    return 0


def _printable(value):
    if isinstance(value, list):
        return [_printable(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "as_sqs_dict"):
        return value.as_sqs_dict()
    return value


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    queue = LeaseQueue() if args.no_failover else FailoverQueue()
    return run(args, queue)


if __name__ == "__main__":
    sys.exit(main())
