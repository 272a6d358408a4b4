import pandas as pd
from time import perf_counter
from id3chi import ID3ChiClassifier

df = pd.DataFrame({
    "outlook":  ["sunny", "sunny", "overcast", "rainy", "rainy", "rainy", "overcast",
                 "sunny", "sunny", "rainy", "sunny", "overcast", "overcast", "rainy"],
    "humidity": ["high", "high", "high", "high", "normal", "normal", "normal",
                 "high", "normal", "normal", "normal", "high", "normal", "high"],
    "windy":    [False, True, False, False, False, True, True,
                 False, False, False, True, True, False, True],
    "play":     ["no", "no", "yes", "yes", "yes", "no", "yes",
                 "no", "yes", "yes", "yes", "yes", "yes", "no"],
})
feats = ["outlook", "humidity", "windy"]

X = df[feats].values.astype(object)
y = df["play"].values

clf = ID3ChiClassifier(confidence_level=0.99, feature_names=feats)

t0 = perf_counter(); clf.fit(X, y); print(f"fit: {perf_counter()-t0:.3f} s")
clf.print_tree()
print("\n".join(clf.export_rules()))
print("training accuracy:", clf.score(X, y))

# outlook unknown: the token is spread over every branch
print(clf.predict_proba([[None, "high", False]]))
