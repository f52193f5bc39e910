from activation.config import load_config_dir
from activation.host import HostProbe, module_importable


def test_explicit_arity_wins_over_import_probe():
    probe = HostProbe(
        capabilities={"jdbc": 2},
        probe_imports={"jdbc": "missing_driver", "yaml-codec": "yaml"},
        finder=lambda name: name == "yaml",
    )
    assert probe.probe_capabilities() == {"jdbc": 2, "yaml-codec": 1}


def test_unimportable_probe_is_absent():
    probe = HostProbe(
        probe_imports={"kafka": "kafka_client"}, finder=lambda n: False
    )
    assert probe.probe_capabilities() == {}
    assert not probe.seed().has_capability("kafka")


def test_module_importable_real_lookups():
    assert module_importable("json")
    assert not module_importable("definitely_not_a_module_xyz")
    assert not module_importable("")


def test_seed_carries_components_properties_environment():
    probe = HostProbe(
        capabilities={"dataSource": 1},
        components=["myTxManager"],
        properties={"spring.aop.proxy-target-class": "false"},
        environment="server",
    )
    ctx = probe.seed()
    assert ctx.arity("dataSource") == 1
    assert ctx.is_committed("myTxManager")
    assert ctx.get_property("spring.aop.proxy-target-class") == "false"
    assert ctx.environment == "server"


def test_property_exclusions_forms():
    assert HostProbe().property_exclusions() == []
    as_text = HostProbe(properties={"activation.exclude": "A, B,,"})
    assert as_text.property_exclusions() == ["A", "B"]
    as_list = HostProbe(properties={"activation.exclude": ["C", " D "]})
    assert as_list.property_exclusions() == ["C", "D"]


def test_from_config_flattens_properties(tmp_path):
    (tmp_path / "base.yaml").write_text(
        "resolver:\n  environment: batch\n"
        "host:\n  components: [userDs]\n"
        "properties:\n  activation:\n    exclude: Web\n",
        encoding="utf-8",
    )
    probe = HostProbe.from_config(load_config_dir(tmp_path))
    assert probe.property_exclusions() == ["Web"]
    ctx = probe.seed()
    assert ctx.environment == "batch"
    assert ctx.is_committed("userDs")
