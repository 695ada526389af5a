from scopa.settings import Settings


def test_defaults():
    settings = Settings()
    assert settings.version == "1.0.14"
    assert settings.missing_code == "NA"
    assert settings.output_root == "scopa"
    assert settings.threshold == 0.95
    assert settings.chromosome == 0
    assert not settings.print_all


def test_create_output_uses_default_root():
    settings = Settings()
    settings.create_output()
    assert settings.output_result == "scopa.result"
    assert settings.output_log == "scopa.log"
    assert settings.output_betas == "scopa.betas"
    assert settings.output_error == "scopa.err"


def test_create_output_uses_custom_root():
    settings = Settings(output_root="run1")
    settings.create_output()
    assert [
        settings.output_result,
        settings.output_log,
        settings.output_betas,
        settings.output_error,
    ] == ["run1.result", "run1.log", "run1.betas", "run1.err"]


def test_mutable_defaults_are_not_shared():
    first = Settings()
    second = Settings()
    first.pheno_list.append("bmi")
    first.exclusion_list["s1"] = 1
    assert second.pheno_list == []
    assert second.exclusion_list == {}