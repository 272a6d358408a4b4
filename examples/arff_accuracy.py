"""Train on one ARFF file, print the tree and report accuracy on a test file.

    python examples/arff_accuracy.py examples/data/weather_train.arff examples/data/weather_test.arff
"""
import argparse
import logging

from id3chi import Dataset, build


def accuracy(tree, data):
    hit = sum(1 for inst in data if tree.classify_index(inst) == inst.class_value)
    return 100.0 * hit / len(data) if len(data) else 0.0


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("train")
    parser.add_argument("test")
    parser.add_argument("--confidence", type=float, default=0.99)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    train = Dataset.from_arff(args.train)
    for att in train.attributes:
        print(f"Attribute: {att.index}: {att}")

    print("Building ID3Chi from training data...")
    tree = build(train, args.confidence, drop_missing_class=True)
    print("Completed ID3Chi tree training")
    print(tree.render())

    test = Dataset.from_arff(args.test).without_missing_class()
    print(f"Accuracy on test data is: {accuracy(tree, test):.2f}%")
    print(f"Accuracy on training data is: {accuracy(tree, train):.2f}%")


if __name__ == "__main__":
    main()
