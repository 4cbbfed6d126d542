# kubetest2

Pieces for driving Kubernetes end-to-end tests: a root command that finds
deployer and tester commands on `PATH` and hands off to them, a tester that
runs an arbitrary command, and helpers for recording run metadata as JUnit
XML and JSON.

## Installation

```
pip install .
```

## Commands

### `kubetest2`

The root command. It looks on `PATH` for a command named
`kubetest2-<deployer>` and runs it with the remaining arguments, forwarding
signals to it and adding `KUBETEST2_VERSION` to its environment.

List the deployers (`kubetest2-*`) and testers (`kubetest2-tester-*`) found on
`PATH`:

```
kubetest2 --help
```

Print the version:

```
kubetest2 --version
```

Hand off to a deployer:

```
kubetest2 <deployer> [flags...]
```

The exit status is 1 if the deployer cannot be found or fails.

### `kubetest2-tester-exec`

Runs its arguments as the test command:

```
kubetest2-tester-exec kubectl get all -A
```

`$VAR` and `${VAR}` in the arguments are expanded from the environment (unset
variables become empty). An argument containing `\$` is not expanded; each
`\$` in it becomes a literal `$`. Before running, the tester adds
`tester-version` to `metadata.json` in `$KUBETEST2_RUN_DIR`, keeping any keys
already there. The command's output is passed through and also captured; on
failure the tester reports the error and exits with status 255. With no
arguments, or with `-h`/`--help` as the first argument, it prints its usage.

## Library

- `kubetest2.flags` — `FlagSet`, a parser for long (`--name=value`) and short
  (`-n`) boolean, string and integer flags, with optional pass-through of
  unknown flags and aligned usage text (`FlagSet.usages()`).
- `kubetest2.metadata` — `Writer` records named steps via `wrap_step()` and
  writes them as a JUnit test suite with `finish()`; `JUnitError` carries
  command output into the report; `CustomJSON` is a flat string-to-string
  JSON document where adding an existing key is an error.
- `kubetest2.artifacts` — the artifacts directory
  (`${ARTIFACTS:-./_artifacts}`) and run directory
  (`${KUBETEST2_RUN_DIR:-./_rundir}`), with `bind_flags()` defining
  `--artifacts` and `--rundir`.
- `kubetest2.commands` — `Command` and helpers (`command`, `raw_command`,
  `output`, `output_lines`, `combined_output_lines`, `inherit_output`,
  `no_output`) for running external commands; failures raise `CommandError`.
- `kubetest2.process` — `exec_process()` runs a child with inherited streams
  and forwarded signals; `exec_junit()` also captures its output and raises
  `ExecJUnitError` on failure.
- `kubetest2.fs` — `copy_file()`, which keeps the source's permission bits.
- `kubetest2.testers.version_metadata` — `write_version_to_metadata()`.
- `kubetest2.testers.kubectl` — `api_server_url()`, asking `kubectl` for the
  current context's API server.

## What is not included

No deployer commands ship with this package, and there is no deployer-side
driver that parses the common run flags and runs the build, up, test and down
stages. `kubetest2 <deployer>` only works with deployer commands installed
separately on `PATH`. The only tester command included is
`kubetest2-tester-exec`.

## Running the tests

```
pip install .[test]
pytest
```