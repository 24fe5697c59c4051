"""Tests for the attribute resolver lookup order and introspection."""

import numpy as np
import pytest
from ocean_records import seawater
from ocean_records.derivations import DEFAULT_REGISTRY, DerivationRegistry
from ocean_records.errors import AliasTargetError, DerivationCycleError, FieldNotFoundError
from ocean_records.models import Record, Unit
from ocean_records.resolver import AttributeResolver, resolve


@pytest.fixture
def resolver() -> AttributeResolver:
    return AttributeResolver()


class TestStoredAndAliased:
    """Test direct and alias lookups."""

    def test_stored_value_returned_unchanged(self, resolver, ctd_record):
        """Test stored fields come back as the very same values."""
        for name, value in ctd_record.data.items():
            assert resolver.resolve(ctd_record, name) is value

    def test_alias_equals_canonical(self, resolver, ctd_record):
        """Test every alias resolves to the same value as its canonical name."""
        for alias, canonical in ctd_record.aliases.items():
            np.testing.assert_array_equal(
                resolver.resolve(ctd_record, alias), resolver.resolve(ctd_record, canonical)
            )

    def test_t068_example(self, resolver):
        """Test the t068 -> temperature example."""
        record = Record(data={"temperature": 5.0}, aliases={"t068": "temperature"})
        assert resolver.resolve(record, "t068") == 5.0

    def test_canonical_wins_over_alias(self, resolver):
        """Test a stored name shadows an alias spelled the same way."""
        record = Record(
            data={"temperature": 5.0, "temperature2": 6.0},
            aliases={"temperature2": "temperature"},
        )
        assert resolver.resolve(record, "temperature2") == 6.0

    def test_alias_to_derivation(self, resolver, ctd_record):
        """Test an alias may point at a derived name."""
        ctd_record.set_alias("potemp", "theta")
        np.testing.assert_allclose(
            resolver.resolve(ctd_record, "potemp"), resolver.resolve(ctd_record, "theta")
        )
        assert resolver.source(ctd_record, "potemp") == "alias"

    def test_zero_value_is_not_missing(self, resolver):
        """Test a stored zero is returned, not reported as absent."""
        record = Record(data={"oxygen": 0.0})
        assert resolver.resolve(record, "oxygen") == 0.0
        assert resolver.has(record, "oxygen")


class TestMetadataPrecedence:
    """Test metadata is consulted before stored fields."""

    def test_metadata_wins(self, resolver):
        """Test a name in both stores resolves to the metadata value."""
        record = Record(metadata={"latitude": 10.0}, data={"latitude": np.array([20.0])})
        assert resolver.resolve(record, "latitude") == 10.0
        assert resolver.source(record, "latitude") == "metadata"

    def test_station_and_float_positions(self, resolver, ctd_record, argo_record):
        """Test latitude resolves whether it lives in metadata or data."""
        assert resolver.resolve(ctd_record, "latitude") == 44.27
        np.testing.assert_array_equal(resolver.resolve(argo_record, "latitude"), [30.0] * 3)

    def test_metadata_feeds_derivations(self, resolver):
        """Test derivations see metadata values through the same lookup."""
        record = Record(
            metadata={"latitude": 30.0},
            data={"pressure": np.array([10000.0]), "latitude": np.array([0.0])},
        )
        depth = resolver.resolve(record, "depth")
        assert depth[0] == pytest.approx(9712.653, abs=1e-3)


class TestDerived:
    """Test derived field evaluation."""

    def test_theta_derived(self, resolver, ctd_record):
        """Test theta is computed from temperature, salinity and pressure."""
        theta = resolver.resolve(ctd_record, "theta")
        expected = seawater.potential_temperature(
            ctd_record.data["salinity"], ctd_record.data["temperature"], ctd_record.data["pressure"]
        )
        np.testing.assert_allclose(theta, expected)
        assert resolver.source(ctd_record, "theta") == "derived"

    def test_derivation_is_stable(self, resolver, ctd_record):
        """Test repeated lookups give the same numbers and do not mutate the record."""
        before = {name: value.copy() for name, value in ctd_record.data.items()}
        first = resolver.resolve(ctd_record, "sigmaTheta")
        second = resolver.resolve(ctd_record, "sigmaTheta")
        np.testing.assert_array_equal(first, second)
        assert set(ctd_record.data) == set(before)
        for name, value in before.items():
            np.testing.assert_array_equal(ctd_record.data[name], value)

    def test_derived_not_cached(self, resolver, ctd_record):
        """Test derived values are never written back into the stored fields."""
        resolver.resolve(ctd_record, "theta")
        assert "theta" not in ctd_record.data
        assert "theta" not in resolver.resolve(ctd_record, "data")

    def test_stored_beats_derived(self, resolver, ctd_record):
        """Test an explicitly stored field is returned instead of being derived."""
        ctd_record.set_data("depth", np.array([1.0, 2.0, 3.0, 4.0]))
        np.testing.assert_array_equal(resolver.resolve(ctd_record, "depth"), [1.0, 2.0, 3.0, 4.0])
        np.testing.assert_array_equal(resolver.resolve(ctd_record, "z"), [-1.0, -2.0, -3.0, -4.0])

    def test_derived_from_derived(self, resolver, ctd_record):
        """Test z is derived from the derived depth."""
        np.testing.assert_allclose(
            resolver.resolve(ctd_record, "z"), -resolver.resolve(ctd_record, "depth")
        )

    def test_reference_pressure_parameter(self, resolver, ctd_record):
        """Test call-time parameters override derivation defaults."""
        theta = resolver.resolve(ctd_record, "theta", referencePressure=1000.0)
        assert theta[-1] == pytest.approx(ctd_record.data["temperature"][-1])

    def test_resolver_parameters(self, ctd_record):
        """Test resolver-level parameters apply when no call-time value is given."""
        resolver = AttributeResolver(parameters={"referencePressure": 1000.0})
        theta = resolver.resolve(ctd_record, "theta")
        assert theta[-1] == pytest.approx(ctd_record.data["temperature"][-1])
        # sigmaTheta stays surface-referenced
        np.testing.assert_allclose(
            resolver.resolve(ctd_record, "sigmaTheta"),
            AttributeResolver().resolve(ctd_record, "sigmaTheta"),
        )

    def test_default_latitude(self):
        """Test depth falls back to the defaultLatitude parameter."""
        record = Record(data={"pressure": np.array([10000.0])})
        resolver = AttributeResolver(parameters={"defaultLatitude": 30.0})
        assert resolver.resolve(record, "depth")[0] == pytest.approx(9712.653, abs=1e-3)

    def test_ipts68_temperature_converted(self, resolver):
        """Test temperatures tagged IPTS-68 are converted before deriving theta."""
        record = Record(
            data={"temperature": [40.0], "salinity": [40.0], "pressure": [10000.0]},
            units={"temperature": Unit(unit="degC", scale="IPTS-68")},
        )
        theta = resolver.resolve(record, "theta")
        assert theta[0] * seawater.T68_FACTOR == pytest.approx(36.89073, abs=1e-4)

    def test_sigma_theta_value(self, resolver):
        """Test sigmaTheta against the EOS-80 check value at the surface."""
        record = Record(
            data={
                "temperature": [seawater.t90_from_t68(5.0)],
                "salinity": [35.0],
                "pressure": [0.0],
            }
        )
        assert resolver.resolve(record, "sigmaTheta")[0] == pytest.approx(27.67547, abs=1e-4)

    def test_dependencies_are_read_only(self, ctd_record):
        """Test derivation functions cannot modify stored arrays."""
        registry = DEFAULT_REGISTRY.copy()

        @registry.register("vandal", requires=("temperature",))
        def vandal(temperature):
            temperature[0] = -99.0
            return temperature

        with pytest.raises(ValueError):
            AttributeResolver(registry).resolve(ctd_record, "vandal")
        assert ctd_record.data["temperature"][0] == 8.0


class TestNotFound:
    """Test absent names are reported, not defaulted."""

    def test_unknown_name(self, resolver, ctd_record):
        """Test an unknown name raises FieldNotFoundError."""
        with pytest.raises(FieldNotFoundError) as excinfo:
            resolver.resolve(ctd_record, "nitrate")
        assert excinfo.value.name == "nitrate"
        assert not resolver.has(ctd_record, "nitrate")

    def test_not_found_is_key_error(self, resolver, ctd_record):
        """Test FieldNotFoundError can be caught as KeyError."""
        with pytest.raises(KeyError):
            resolver.resolve(ctd_record, "nitrate")

    def test_missing_dependency(self, resolver):
        """Test a derivation with an unavailable dependency is not found."""
        record = Record(data={"temperature": [5.0], "pressure": [100.0]})
        with pytest.raises(FieldNotFoundError) as excinfo:
            resolver.resolve(record, "theta")
        assert excinfo.value.name == "theta"
        assert isinstance(excinfo.value.__cause__, FieldNotFoundError)
        assert excinfo.value.__cause__.name == "salinity"

    def test_get_default(self, resolver, ctd_record):
        """Test get() returns the default only for absent names."""
        assert resolver.get(ctd_record, "nitrate", default=-1) == -1
        assert resolver.get(ctd_record, "station") == "HL2"

    def test_dangling_alias(self, resolver):
        """Test an alias to an unknown name fails at lookup and at validation."""
        record = Record(data={"temperature": [5.0]}, aliases={"TEMP_X": "temp"})
        with pytest.raises(FieldNotFoundError):
            resolver.resolve(record, "TEMP_X")
        with pytest.raises(AliasTargetError) as excinfo:
            resolver.validate(record)
        assert excinfo.value.dangling == {"TEMP_X": "temp"}

    def test_cycle_detected(self):
        """Test mutually dependent derivations raise DerivationCycleError."""
        registry = DerivationRegistry()
        registry.register("a", requires=("b",))(lambda b: b)
        registry.register("b", requires=("a",))(lambda a: a)
        resolver = AttributeResolver(registry)

        with pytest.raises(DerivationCycleError) as excinfo:
            resolver.resolve(Record(), "a")
        assert excinfo.value.chain == ["a", "b", "a"]
        assert "a" not in resolver.names(Record())["derived"]

    def test_cycle_reported_by_source(self):
        """Test source() raises the cycle error rather than not-found."""
        registry = DerivationRegistry()
        registry.register("a", requires=("b",))(lambda b: b)
        registry.register("b", requires=("a",))(lambda a: a)
        resolver = AttributeResolver(registry)

        with pytest.raises(DerivationCycleError) as excinfo:
            resolver.source(Record(), "a")
        assert excinfo.value.chain == ["a", "b", "a"]
        assert not resolver.has(Record(), "a")


class TestContainersAndQualifiers:
    """Test whole-container snapshots and qualifier queries."""

    def test_data_snapshot(self, resolver, ctd_record):
        """Test the data snapshot holds only stored fields and is a copy."""
        snapshot = resolver.resolve(ctd_record, "data")
        assert set(snapshot) == {"pressure", "temperature", "salinity"}
        snapshot["temperature"][0] = -1.0
        snapshot["extra"] = 1
        assert ctd_record.data["temperature"][0] == 8.0
        assert "extra" not in ctd_record.data

    def test_metadata_snapshot(self, resolver, ctd_record):
        """Test the metadata snapshot equals the metadata store."""
        assert resolver.resolve(ctd_record, "metadata") == ctd_record.metadata
        assert resolver.source(ctd_record, "metadata") == "container"

    def test_unit_and_scale(self, resolver, ctd_record):
        """Test unit and scale queries for stored, aliased and derived names."""
        assert resolver.resolve(ctd_record, "temperature unit") == "degC"
        assert resolver.resolve(ctd_record, "temperature scale") == "ITS-90"
        assert resolver.resolve(ctd_record, "sal00 scale") == "PSS-78"
        assert resolver.resolve(ctd_record, "sigmaTheta unit") == "kg/m^3"

    def test_unit_unknown(self, resolver, argo_record):
        """Test a unit query for a field without a unit is not found."""
        with pytest.raises(FieldNotFoundError):
            resolver.resolve(argo_record, "temperature unit")

    def test_original_name(self, resolver, ctd_record):
        """Test the name query returns the origin-specific name."""
        assert resolver.resolve(ctd_record, "temperature name") == "t090C"
        assert resolver.resolve(ctd_record, "theta name") == "theta"

    def test_flags(self, resolver, ctd_record):
        """Test flag queries by canonical name and by alias."""
        ctd_record.set_flags("salinity", [1, 1, 4, 1])
        np.testing.assert_array_equal(resolver.resolve(ctd_record, "salinityFlag"), [1, 1, 4, 1])
        np.testing.assert_array_equal(resolver.resolve(ctd_record, "sal00Flag"), [1, 1, 4, 1])
        with pytest.raises(FieldNotFoundError):
            resolver.resolve(ctd_record, "temperatureFlag")


class TestIntrospection:
    """Test names() and source()."""

    def test_names(self, resolver, ctd_record):
        """Test names groups metadata, data, aliases and derivable names."""
        names = resolver.names(ctd_record)
        assert names["metadata"] == ["latitude", "longitude", "station"]
        assert names["data"] == ["pressure", "salinity", "temperature"]
        assert names["aliases"] == ["prDM", "sal00", "t090C"]
        assert set(names["derived"]) == {
            "theta",
            "potentialTemperature",
            "density",
            "sigmaTheta",
            "sigma0",
            "depth",
            "z",
        }

    def test_names_without_salinity(self, resolver):
        """Test only derivations with available dependencies are listed."""
        record = Record(data={"pressure": [1.0, 2.0]})
        assert resolver.names(record)["derived"] == ["depth", "z"]

    def test_sources(self, resolver, ctd_record):
        """Test source distinguishes stored from computed values."""
        assert resolver.source(ctd_record, "temperature") == "data"
        assert resolver.source(ctd_record, "t090C") == "alias"
        assert resolver.source(ctd_record, "station") == "metadata"
        assert resolver.source(ctd_record, "temperature unit") == "qualifier"
        assert resolver.source(ctd_record, "density") == "derived"
        with pytest.raises(FieldNotFoundError):
            resolver.source(ctd_record, "nitrate")


def test_module_level_resolve(ctd_record):
    """Test resolve() and Record indexing use the default resolver."""
    assert resolve(ctd_record, "station") == "HL2"
    np.testing.assert_allclose(ctd_record["theta"], resolve(ctd_record, "theta"))
    assert "theta" in ctd_record
    assert "nitrate" not in ctd_record
