import os

from ravel import export_as_csv, guess_from_stream, load_tensor_from_csv

os.chdir(os.path.dirname(os.path.abspath(__file__)))
SOURCE = """
region;quarter;2019;2020
North;Q1;1,5;2,25
North;Q2;3;
South;Q1;4;5,75
South;Q2;;6
""".strip()

with open("01_regions.csv", "w", encoding="utf-8") as handle:
    handle.write(SOURCE + "\n")

with open("01_regions.csv", "r", encoding="utf-8") as handle:
    text = handle.read()

spec = guess_from_stream(text)
spec.dec_separator = ","
tensor = load_tensor_from_csv(text, spec)
print(tensor)
for key, value in tensor.items():
    print(key, value)

export_as_csv(tensor, "runs/01_regions.csv", comment="regional totals")
