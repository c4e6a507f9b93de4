# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from nifbind.cli import main

raise SystemExit(main())
