import numpy as np
import pandas as pd
import pytest


def make_titanic_frame(n, seed=0, with_label=True, start_id=1):
    rng = np.random.default_rng(seed)
    sex = rng.choice(['male', 'female'], n)
    pclass = rng.integers(1, 4, n)
    titles = np.where(sex == 'male', 'Mr.', 'Miss.')
    df = pd.DataFrame({
        'PassengerId': np.arange(start_id, start_id + n),
        'Pclass': pclass,
        'Name': [f"Doe, {t} John" for t in titles],
        'Sex': sex,
        'Age': rng.uniform(1, 70, n).round(),
        'SibSp': rng.integers(0, 3, n),
        'Parch': rng.integers(0, 3, n),
        'Ticket': 'A/5 21171',
        'Fare': rng.uniform(5, 100, n).round(2),
        'Cabin': np.nan,
        'Embarked': rng.choice(['C', 'Q', 'S'], n),
    })
    if with_label:
        df.insert(1, 'Survived', ((sex == 'female') | (pclass == 1)).astype(int))
    return df


@pytest.fixture
def titanic_csvs(tmp_path):
    train = make_titanic_frame(60, seed=1)
    test = make_titanic_frame(20, seed=2, with_label=False, start_id=892)
    paths = {
        'train': tmp_path / 'train.csv',
        'test': tmp_path / 'test.csv',
        'sample': tmp_path / 'gender_submission.csv',
    }
    train.to_csv(paths['train'], index=False)
    test.to_csv(paths['test'], index=False)
    pd.DataFrame({'PassengerId': test['PassengerId'], 'Survived': 0}).to_csv(paths['sample'], index=False)
    return {k: str(v) for k, v in paths.items()}
