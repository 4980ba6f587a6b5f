from git_diff_apply.cli import main

main()
