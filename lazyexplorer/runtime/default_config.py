"""Built-in configuration, merged underneath the user's config file."""

from __future__ import annotations

DEFAULT_CONFIG_YAML = r"""
general:
  show_hidden: false
  read_only: false
  initial_mode: default
  notify_unbound_keys: true
  history_limit: 200
  quit_grace_seconds: 2.0
  shell: bash
  explorer:
    group_directories_first: true
    sorters:
      - sorter: ByIRelativePath
    filters: []

modes:
  builtin:
    default:
      help: browse
      key_bindings:
        on_key:
          "j":
            help: down
            messages: [FocusNext]
          "down":
            messages: [FocusNext]
          "k":
            help: up
            messages: [FocusPrevious]
          "up":
            messages: [FocusPrevious]
          "l":
            help: enter
            messages: [Enter]
          "right":
            messages: [Enter]
          "h":
            help: back
            messages: [Back]
          "left":
            messages: [Back]
          "g g":
            help: go to top
            messages: [FocusFirst]
          "G":
            help: go to bottom
            messages: [FocusLast]
          "g h":
            help: go home
            messages:
              - ChangeDirectory: "~"
          "g f":
            help: follow symlink
            messages: [FollowSymlink]
          "g x":
            help: open in gui
            messages:
              - BashExecAsync: 'xdg-open "$LAZYEXPLORER_FOCUS_PATH" >/dev/null 2>&1 || open "$LAZYEXPLORER_FOCUS_PATH"'
          "[":
            help: last visited path
            messages: [LastVisitedPath]
          "]":
            help: next visited path
            messages: [NextVisitedPath]
          "space":
            help: toggle selection
            messages: [ToggleSelection, FocusNext]
          "v":
            messages: [ToggleSelection, FocusNext]
          "V":
            help: select all
            messages: [SelectAll]
          "ctrl-u":
            help: clear selection
            messages: [ClearSelection]
          ".":
            help: show hidden
            messages: [ToggleHidden]
          "ctrl-r":
            help: refresh
            messages: [Refresh]
          ":":
            help: action
            messages:
              - PushMode: action
          "s":
            help: sort
            messages:
              - PushMode: sort
          "f":
            help: filter
            messages:
              - PushMode: filter
          "/":
            help: search
            messages:
              - ResetInputBuffer
              - PushMode: search
          "ctrl-x":
            help: cancel pending tasks
            messages: [CancelPending]
          "enter":
            help: print result and quit
            messages: [PrintResultAndQuit]
          "q":
            help: quit
            messages: [Quit]
          "ctrl-c":
            help: terminate
            messages: [Terminate]

    action:
      help: action to
      key_bindings:
        on_key:
          "d":
            help: create directory
            messages:
              - ResetInputBuffer
              - SwitchMode: create_directory
          "f":
            help: create file
            messages:
              - ResetInputBuffer
              - SwitchMode: create_file
          "r":
            help: rename
            messages:
              - ResetInputBuffer
              - SwitchMode: rename
          "s":
            help: selection operations
            messages:
              - SwitchMode: selection_ops
          "esc":
            help: cancel
            messages: [PopMode]
          "ctrl-c":
            help: terminate
            messages: [Terminate]

    selection_ops:
      help: selection ops
      key_bindings:
        on_key:
          "c":
            help: copy here
            messages:
              - BashExec: |
                  printf '%s\n' "$LAZYEXPLORER_SELECTION" | while IFS= read -r path; do
                    [ -n "$path" ] && cp -r -- "$path" ./
                  done
              - ClearSelection
              - ExplorePwd
              - PopMode
          "m":
            help: move here
            messages:
              - BashExec: |
                  printf '%s\n' "$LAZYEXPLORER_SELECTION" | while IFS= read -r path; do
                    [ -n "$path" ] && mv -- "$path" ./
                  done
              - ClearSelection
              - ExplorePwd
              - PopMode
          "x":
            help: clear selection
            messages: [ClearSelection, PopMode]
          "esc":
            help: cancel
            messages: [PopMode]

    create_directory:
      help: create directory
      key_bindings:
        on_key:
          "enter":
            help: create
            messages:
              - BashExec: 'mkdir -p -- "$LAZYEXPLORER_INPUT_BUFFER"'
              - ResetInputBuffer
              - PopMode
              - ExplorePwd
          "backspace":
            messages: [RemoveInputBufferLastCharacter]
          "esc":
            help: cancel
            messages: [ResetInputBuffer, PopMode]
        default:
          messages: [BufferInputFromKey]

    create_file:
      help: create file
      key_bindings:
        on_key:
          "enter":
            help: create
            messages:
              - BashExec: 'touch -- "$LAZYEXPLORER_INPUT_BUFFER"'
              - ResetInputBuffer
              - PopMode
              - ExplorePwd
          "backspace":
            messages: [RemoveInputBufferLastCharacter]
          "esc":
            help: cancel
            messages: [ResetInputBuffer, PopMode]
        default:
          messages: [BufferInputFromKey]

    rename:
      help: rename
      key_bindings:
        on_key:
          "enter":
            help: rename
            messages:
              - BashExec: 'mv -- "$LAZYEXPLORER_FOCUS_PATH" "$LAZYEXPLORER_INPUT_BUFFER"'
              - ResetInputBuffer
              - PopMode
              - ExplorePwd
          "backspace":
            messages: [RemoveInputBufferLastCharacter]
          "esc":
            help: cancel
            messages: [ResetInputBuffer, PopMode]
        default:
          messages: [BufferInputFromKey]

    search:
      help: search
      key_bindings:
        on_key:
          "enter":
            help: apply
            messages:
              - AddNodeFilterFromInput: IRelativePathDoesContain
              - ResetInputBuffer
              - PopMode
          "backspace":
            messages: [RemoveInputBufferLastCharacter]
          "esc":
            help: cancel
            messages: [ResetInputBuffer, PopMode]
        default:
          messages: [BufferInputFromKey]

    filter:
      help: filter
      key_bindings:
        on_key:
          "d":
            help: only directories
            messages:
              - ToggleNodeFilter: IsDir
          "f":
            help: only files
            messages:
              - ToggleNodeFilter: IsFile
          "c":
            help: clear filters
            messages: [ClearNodeFilters]
          "r":
            help: reset filters
            messages: [ResetNodeFilters]
          "enter":
            help: done
            messages: [PopMode]
          "esc":
            messages: [PopMode]

    sort:
      help: sort
      key_bindings:
        on_key:
          "n":
            help: by name
            messages:
              - AddNodeSorter: ByIRelativePath
          "s":
            help: by size
            messages:
              - AddNodeSorter: BySize
          "m":
            help: by last modified
            messages:
              - AddNodeSorter: ByLastModified
          "e":
            help: by extension
            messages:
              - AddNodeSorter: ByExtension
          "r":
            help: reverse sorters
            messages: [ReverseNodeSorters]
          "c":
            help: clear sorters
            messages: [ClearNodeSorters]
          "R":
            help: reset sorters
            messages: [ResetNodeSorters]
          "enter":
            help: done
            messages: [PopMode]
          "esc":
            messages: [PopMode]

  custom: {}
"""
