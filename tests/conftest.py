import pytest

from id3chi import Dataset

WEATHER_ARFF = """@relation weather

@attribute outlook {sunny, overcast, rainy}
@attribute temperature {hot, mild, cool}
@attribute humidity {high, normal}
@attribute windy {TRUE, FALSE}
@attribute play {yes, no}

@data
sunny,hot,high,FALSE,no
sunny,hot,high,TRUE,no
overcast,hot,high,FALSE,yes
rainy,mild,high,FALSE,yes
rainy,cool,normal,FALSE,yes
rainy,cool,normal,TRUE,no
overcast,cool,normal,TRUE,yes
sunny,mild,high,FALSE,no
sunny,cool,normal,FALSE,yes
rainy,mild,normal,FALSE,yes
sunny,mild,normal,TRUE,yes
overcast,mild,high,TRUE,yes
overcast,hot,normal,FALSE,yes
rainy,mild,high,TRUE,no
"""


def weather_dataset(rows):
    """Dataset over Weather in {Sunny, Rainy} and class in {Yes, No}, in that order."""
    X = [[w] for w, _ in rows]
    y = [c for _, c in rows]
    return Dataset.from_arrays(X, y, feature_names=["Weather"], categories=[["Sunny", "Rainy"]],
                               class_name="Play", class_values=["Yes", "No"])


@pytest.fixture
def separable():
    return weather_dataset([("Sunny", "Yes"), ("Sunny", "Yes"), ("Rainy", "No"), ("Rainy", "No")])


@pytest.fixture
def balanced_noise():
    return weather_dataset([("Sunny", "Yes"), ("Sunny", "Yes"), ("Sunny", "No"),
                            ("Rainy", "Yes"), ("Rainy", "Yes"), ("Rainy", "No")])


@pytest.fixture
def weak_association():
    """Sunny 4:2, Rainy 3:3 and five instances missing Weather (3:2)."""
    rows = ([("Sunny", "Yes")] * 4 + [("Sunny", "No")] * 2
            + [("Rainy", "Yes")] * 3 + [("Rainy", "No")] * 3
            + [(None, "Yes")] * 3 + [(None, "No")] * 2)
    return weather_dataset(rows)


@pytest.fixture
def weather_arff(tmp_path):
    path = tmp_path / "weather.arff"
    path.write_text(WEATHER_ARFF)
    return str(path)
